import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from lua_modkit.cli.logs import COMPILER_TAG, WATCHER_TAG, configure_logging
from lua_modkit.core.config import PROJECT_ENV_VAR, BuildConfig, ProjectLayout, get_layout, load_build_config
from lua_modkit.core.controller import BuildController
from lua_modkit.core.declarations import compile_declarations
from lua_modkit.core.manifest import ManifestError, load_mod_info
from lua_modkit.core.pipeline import run_build
from lua_modkit.core.ports.transpiler import Transpiler
from lua_modkit.models import ModInfo, WatchEvent
from lua_modkit.transpiler.tstl import TranspilerError

console = Console()
logger = logging.getLogger(__name__)

ProjectOption = Annotated[
    Path,
    typer.Option("--project", "-p", envvar=PROJECT_ENV_VAR, help="Mod project root (holds mod.info and src/)."),
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")]


def _get_transpiler(layout: ProjectLayout) -> Transpiler:
    from lua_modkit.transpiler.tstl import TstlTranspiler

    return TstlTranspiler(cwd=layout.root)


def _load_mod_info(layout: ProjectLayout) -> ModInfo:
    try:
        return load_mod_info(layout.manifest)
    except ManifestError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from None


def _load_config(layout: ProjectLayout) -> BuildConfig:
    return load_build_config(layout, load_mod_info(layout.manifest))


def build(project: ProjectOption = Path("."), verbose: VerboseOption = False) -> None:
    """Compile the project once."""
    configure_logging(COMPILER_TAG, verbose=verbose)
    layout = get_layout(project)
    mod_info = _load_mod_info(layout)
    layout.ensure_output_dirs()
    try:
        run = run_build(layout, load_build_config(layout, mod_info), _get_transpiler(layout))
    except (ManifestError, TranspilerError, OSError) as exc:
        console.print(f"[red]Build failed:[/red] {exc}")
        raise typer.Exit(1) from None
    console.print(f"[green]Built[/green] {len(run.modules)} module(s) for {mod_info.id}")
    if run.violations:
        console.print(f"[yellow]{len(run.violations)} scope violation(s)[/yellow]")


def declarations(project: ProjectOption = Path("."), verbose: VerboseOption = False) -> None:
    """Write the merged declaration file to dist/<mod id>.d.ts and exit."""
    configure_logging(COMPILER_TAG, verbose=verbose)
    layout = get_layout(project)
    mod_info = _load_mod_info(layout)
    layout.ensure_output_dirs()
    try:
        out_file = compile_declarations(
            layout, load_build_config(layout, mod_info), mod_info, _get_transpiler(layout)
        )
    except (ManifestError, TranspilerError, OSError) as exc:
        console.print(f"[red]Declaration build failed:[/red] {exc}")
        raise typer.Exit(1) from None
    if out_file is not None:
        console.print(f"[green]Wrote[/green] {out_file}")


def watch(project: ProjectOption = Path("."), verbose: VerboseOption = False) -> None:
    """Compile the project, then rebuild and mirror files as src/ changes."""
    from lua_modkit.watcher.watchfiles_adapter import WatchfilesWatcher

    configure_logging(WATCHER_TAG, verbose=verbose)
    layout = get_layout(project)
    _load_mod_info(layout)
    layout.ensure_output_dirs()
    transpiler = _get_transpiler(layout)

    try:
        controller = BuildController(
            layout,
            build=lambda config: run_build(layout, config, transpiler),
            load_config=lambda: _load_config(layout),
        )
    except ManifestError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from None
    try:
        controller.rebuild()
    except (ManifestError, TranspilerError, OSError):
        logger.exception("Initial build failed; waiting for changes")

    async def _on_event(event: WatchEvent) -> None:
        controller.handle(event)

    async def _run() -> None:
        watcher = WatchfilesWatcher(layout.src, _on_event)
        await watcher.start()
        try:
            await asyncio.Event().wait()
        finally:
            await watcher.stop()

    console.print(f"[green]Watching {layout.src}[/green] (Ctrl+C to stop)")
    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("Stopped.")
