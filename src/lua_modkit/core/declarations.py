"""Merge the per-scope ``.d.ts`` trees into one ``dist/<mod id>.d.ts``."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from lua_modkit.core.assets import DECLARATION_SUFFIX
from lua_modkit.core.banner import TS_COMMENT, BannerTokens, render_banner
from lua_modkit.core.config import BuildConfig, ProjectLayout
from lua_modkit.core.ports.transpiler import Transpiler
from lua_modkit.models import SCOPE_DIRECTORIES, ModInfo

logger = logging.getLogger(__name__)

DECLARATION_PRAGMA = "/** @noResolution @noSelfInFile */"

# Module specifiers in declare module, from, bare import, import("...") and require("...").
_SCOPE_PREFIX_RE = re.compile(
    r"""(declare module |from |import |import\(\s*|require\(\s*)(["'])(?:(?:client|server|shared)/)+"""
)


def strip_consolidated(text: str) -> list[str]:
    """Drop empty ambient-module blocks and blank lines."""
    kept: list[str] = []
    for line in text.splitlines():
        if "declare module " in line and "{ }" in line:
            continue
        if not line:
            continue
        kept.append(line)
    return kept


def collect_declaration_files(layout: ProjectLayout) -> dict[str, str]:
    """Return ``{relative path: content}`` for every ``.d.ts`` in the scope trees, in scope order."""
    collected: dict[str, str] = {}
    for scope in SCOPE_DIRECTORIES:
        scope_dir = layout.source_dir(scope)
        if not scope_dir.is_dir():
            continue
        for path in sorted(scope_dir.rglob(f"*{DECLARATION_SUFFIX}")):
            if not path.is_file():
                continue
            collected[path.relative_to(layout.root).as_posix()] = path.read_text(encoding="utf-8")
    return collected


def flatten_scope_prefixes(line: str) -> str:
    return _SCOPE_PREFIX_RE.sub(r"\1\2", line)


def merge_declarations(
    consolidated: list[str],
    files: dict[str, str],
    config: BuildConfig,
    tokens: BannerTokens,
) -> str | None:
    """Build the merged artifact text, or ``None`` when there is nothing to export."""
    if not consolidated and not files:
        return None

    lines = [DECLARATION_PRAGMA, ""]
    header = render_banner(config.header, tokens, TS_COMMENT)
    if header:
        lines.extend(header)
        lines.append("")
    lines.extend(consolidated)
    lines.append("")
    for file_path, content in files.items():
        lines.append(f"/* File: {file_path} */")
        lines.extend(content.splitlines())
    lines = [flatten_scope_prefixes(line) for line in lines]
    lines.extend(render_banner(config.footer, tokens, TS_COMMENT))
    return "\n".join(lines) + "\n"


def compile_declarations(
    layout: ProjectLayout,
    config: BuildConfig,
    mod_info: ModInfo,
    transpiler: Transpiler,
) -> Path | None:
    out_file = layout.declaration_file(mod_info.id)
    logger.info("Compiling project declarations.. (file: %s)", out_file)
    out_file.parent.mkdir(parents=True, exist_ok=True)
    transpiler.emit_declarations(layout.tsconfig, out_file)

    consolidated = strip_consolidated(out_file.read_text(encoding="utf-8")) if out_file.is_file() else []
    files = collect_declaration_files(layout)
    merged = merge_declarations(consolidated, files, config, BannerTokens.from_config(config))
    if merged is None:
        logger.info("No declarations to export.")
        out_file.unlink(missing_ok=True)
        return None

    logger.info("Refactoring project declarations..")
    out_file.write_text(merged, encoding="utf-8")
    return out_file
