import logging
import os
import shlex
import subprocess
import tempfile
from pathlib import Path

from lua_modkit.core.ports.transpiler import EmitCallback

logger = logging.getLogger(__name__)

TRANSPILER_ENV_VAR = "LUA_MODKIT_TRANSPILER"
_DEFAULT_RUNNER = "npx"


class TranspilerError(RuntimeError):
    """Raised when the TypeScript toolchain exits with a failure."""


class TstlTranspiler:
    """Run TypeScriptToLua and tsc as subprocesses.

    Implements the ``Transpiler`` protocol. Lua output goes to a scratch
    directory and every emitted file is handed to the callback with its path
    relative to that directory.
    """

    def __init__(self, runner: str | None = None, cwd: Path | None = None) -> None:
        self._runner = shlex.split(runner or os.getenv(TRANSPILER_ENV_VAR, _DEFAULT_RUNNER))
        self._cwd = cwd

    def _run(self, args: list[str]) -> None:
        command = [*self._runner, *args]
        logger.debug("Running %s", " ".join(command))
        result = subprocess.run(
            command,
            cwd=self._cwd,
            check=False,
            capture_output=True,
            text=True,
        )
        if result.returncode != 0:
            output = (result.stdout + result.stderr).strip()
            raise TranspilerError(f"{args[0]} exited with code {result.returncode}: {output}")

    def transpile(self, config_path: Path, on_emit: EmitCallback) -> None:
        with tempfile.TemporaryDirectory(prefix="lua-modkit-") as out_dir:
            self._run(["tstl", "-p", str(config_path), "--outDir", out_dir])
            root = Path(out_dir)
            for path in sorted(root.rglob("*")):
                if not path.is_file():
                    continue
                relative = path.relative_to(root).as_posix()
                on_emit(relative, path.read_text(encoding="utf-8"), relative.endswith(".d.ts"))

    def emit_declarations(self, config_path: Path, out_file: Path) -> None:
        self._run(
            [
                "tsc",
                "-p",
                str(config_path),
                "--declaration",
                "--emitDeclarationOnly",
                "--outFile",
                str(out_file),
            ]
        )
