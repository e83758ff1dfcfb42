from collections.abc import Callable
from pathlib import Path
from typing import Protocol

# (output path relative to the emit root, content, is-declaration)
EmitCallback = Callable[[str, str, bool], None]


class Transpiler(Protocol):
    def transpile(self, config_path: Path, on_emit: EmitCallback) -> None: ...

    def emit_declarations(self, config_path: Path, out_file: Path) -> None: ...
