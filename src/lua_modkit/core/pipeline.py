"""Full build: mirror assets, transpile, post-process and write every emitted module."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from lua_modkit.core.assets import (
    DECLARATION_SUFFIX,
    RUNTIME_LIBRARY,
    copy_shared_libraries,
    mirror_assets,
)
from lua_modkit.core.banner import BannerTokens, apply_lua_banners
from lua_modkit.core.config import BuildConfig, ProjectLayout
from lua_modkit.core.ports.transpiler import Transpiler
from lua_modkit.core.reimport import apply_reimport
from lua_modkit.core.resolver import fix_requires
from lua_modkit.models import SCOPE_DIRECTORIES, BuildRun, Scope

logger = logging.getLogger(__name__)

PLACEHOLDER_NAME = "_.ts"

# Emitted as-is: generated runtime and host binding modules.
PASSTHROUGH_MODULES = (RUNTIME_LIBRARY, "PipeWrench.lua", "PipeWrench-Events.lua")


def normalize_emitted_path(path: str) -> str:
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    if normalized.endswith(RUNTIME_LIBRARY):
        return f"{Scope.SHARED.value}/{RUNTIME_LIBRARY}"
    return normalized.lstrip("/")


def scope_of(relative_path: str) -> Scope:
    head = relative_path.split("/", 1)[0]
    for scope in SCOPE_DIRECTORIES:
        if head == scope.value:
            return scope
    return Scope.NONE


def postprocess_module(relative_path: str, text: str, config: BuildConfig, run: BuildRun | None = None) -> str:
    """Apply require rewriting, deferred reimports and banners to one emitted module."""
    if relative_path.endswith(PASSTHROUGH_MODULES):
        return text
    result = fix_requires(scope_of(relative_path), text)
    if run is not None:
        run.violations.extend(result.violations)
    lua = apply_reimport(result.text, config.reimport_template, config.deferred_namespace)
    return apply_lua_banners(lua, config, BannerTokens.from_config(config))


@contextmanager
def placeholder_sources(layout: ProjectLayout) -> Iterator[list[Path]]:
    """Keep every scope directory in the transpiler's emitted paths.

    Only placeholders created here are removed afterwards.
    """
    created: list[Path] = []
    try:
        for scope in SCOPE_DIRECTORIES:
            placeholder = layout.source_dir(scope) / PLACEHOLDER_NAME
            if not placeholder.exists():
                placeholder.parent.mkdir(parents=True, exist_ok=True)
                placeholder.write_text("", encoding="utf-8")
                created.append(placeholder)
        yield created
    finally:
        for placeholder in created:
            placeholder.unlink(missing_ok=True)


def run_build(layout: ProjectLayout, config: BuildConfig, transpiler: Transpiler) -> BuildRun:
    logger.info("Compiling project..")
    run = BuildRun(started_at=datetime.now())

    layout.ensure_output_dirs()
    for scope in SCOPE_DIRECTORIES:
        mirror_assets(layout.source_dir(scope), layout.output_dir(scope), config)
    copy_shared_libraries(layout, config)

    def on_emit(path: str, content: str, is_declaration: bool) -> None:
        if not content:
            return
        relative = normalize_emitted_path(path)
        if is_declaration or relative.endswith(DECLARATION_SUFFIX):
            return
        destination = layout.output / relative
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(postprocess_module(relative, content, config, run), encoding="utf-8")
        run.modules.append(relative)

    with placeholder_sources(layout):
        transpiler.transpile(layout.tsconfig, on_emit)

    run.finished_at = datetime.now()
    logger.info("Compilation complete. Took %s second(s).", run.duration_seconds)
    return run
