"""Turn watch events into rebuilds and mirror operations on the output tree.

Every source change triggers a full rebuild of the whole tree; there is no
incremental cache or dependency graph. Events are handled one at a time and a
rebuild runs to completion before the next event is looked at.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from pathlib import Path, PurePosixPath

from lua_modkit.core.assets import DECLARATION_SUFFIX, LUA_SUFFIX, SOURCE_SUFFIX, copy_file
from lua_modkit.core.config import BuildConfig, ProjectLayout
from lua_modkit.models import BuildRun, WatchEvent, WatchEventKind

logger = logging.getLogger(__name__)

# Banner inputs living next to the sources; never compiled or mirrored.
RESERVED_NAMES = frozenset({"header.lua", "footer.lua"})

ASSET_SUFFIXES = frozenset({LUA_SUFFIX})


class BuildController:
    def __init__(
        self,
        layout: ProjectLayout,
        build: Callable[[BuildConfig], BuildRun],
        load_config: Callable[[], BuildConfig],
    ) -> None:
        self._layout = layout
        self._build = build
        self._load_config = load_config
        self._config = load_config()
        self.runs: list[BuildRun] = []

    @property
    def config(self) -> BuildConfig:
        return self._config

    def rebuild(self) -> BuildRun:
        self._config = self._load_config()
        run = self._build(self._config)
        self.runs.append(run)
        return run

    def relative_source_path(self, path: str) -> PurePosixPath | None:
        """Map an event path to a path relative to the source root, or ``None`` if outside it."""
        candidate = Path(path.replace("\\", "/"))
        if not candidate.is_absolute():
            candidate = self._layout.root / candidate
        try:
            relative = candidate.resolve().relative_to(self._layout.src.resolve())
        except ValueError:
            return None
        if not relative.parts:
            return None
        return PurePosixPath(relative.as_posix())

    def handle(self, event: WatchEvent) -> BuildRun | None:
        relative = self.relative_source_path(event.path)
        if relative is None:
            return None
        if str(relative).lower() in RESERVED_NAMES:
            return None

        source = self._layout.src / relative
        mirror = self._layout.output / relative

        if event.kind in (WatchEventKind.ADD, WatchEventKind.CHANGE):
            return self._on_file_changed(source, mirror)
        if event.kind is WatchEventKind.UNLINK:
            self._on_file_removed(mirror)
        elif event.kind is WatchEventKind.UNLINK_DIR:
            if mirror.is_dir():
                shutil.rmtree(mirror)
                logger.info("Deleted directory: %s", mirror)
        elif event.kind is WatchEventKind.ADD_DIR:
            if not mirror.exists():
                mirror.mkdir(parents=True, exist_ok=True)
                logger.info("Created directory: %s", mirror)
        return None

    def _on_file_changed(self, source: Path, mirror: Path) -> BuildRun | None:
        if not source.is_file():
            return None
        name = source.name.lower()
        if source.suffix.lower() in ASSET_SUFFIXES:
            copy_file(source, mirror, self._config)
            return None
        if name.endswith(DECLARATION_SUFFIX) or not name.endswith(SOURCE_SUFFIX):
            return None
        logger.info("File changed: %s", source)
        return self.rebuild()

    def _on_file_removed(self, mirror: Path) -> None:
        name = mirror.name.lower()
        if name.endswith(DECLARATION_SUFFIX):
            return
        if name.endswith(SOURCE_SUFFIX):
            mirror = mirror.with_name(mirror.name[: -len(SOURCE_SUFFIX)] + LUA_SUFFIX)
        if mirror.is_file():
            mirror.unlink()
            logger.info("Deleted file: %s", mirror)
