from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Coroutine, Iterable
from pathlib import Path
from typing import Any

from watchfiles import Change, awatch

from lua_modkit.models import WatchEvent, WatchEventKind

logger = logging.getLogger(__name__)


def _depth(path: str) -> int:
    return len(Path(path).parts)


class WatchfilesWatcher:
    """Watch the source tree and feed ``WatchEvent``s to a callback, one at a time.

    Implements the ``FileWatcherPort`` protocol. watchfiles reports plain
    added/modified/deleted changes, so directories seen so far are tracked to
    tell ``unlinkDir`` apart from ``unlink``.
    """

    def __init__(
        self,
        directory: str | Path,
        on_event: Callable[[WatchEvent], Coroutine[Any, Any, None]],
    ) -> None:
        self._directory = Path(directory).absolute()
        self._on_event = on_event
        self._task: asyncio.Task[None] | None = None
        self._known_dirs: set[str] = set()

    async def start(self) -> None:
        if self._task is not None:
            return
        if self._directory.is_dir():
            self._known_dirs = {str(p) for p in self._directory.rglob("*") if p.is_dir()}
        self._task = asyncio.create_task(self._watch())
        logger.info("Watcher started for %s", self._directory)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Watcher stopped for %s", self._directory)

    def to_events(self, changes: Iterable[tuple[Change, str]]) -> list[WatchEvent]:
        """Order one batch: new directories, file writes, file deletions, removed directories."""
        dir_adds: list[str] = []
        file_writes: list[tuple[str, WatchEventKind]] = []
        file_removals: list[str] = []
        dir_removals: list[str] = []

        for change, raw_path in changes:
            path = str(Path(raw_path).absolute())
            if change == Change.deleted:
                if path in self._known_dirs:
                    dir_removals.append(path)
                else:
                    file_removals.append(path)
            elif Path(path).is_dir():
                if change == Change.added:
                    dir_adds.append(path)
            elif change == Change.added:
                file_writes.append((path, WatchEventKind.ADD))
            else:
                file_writes.append((path, WatchEventKind.CHANGE))

        for path in dir_adds:
            self._known_dirs.add(path)
        for path in dir_removals:
            self._known_dirs = {d for d in self._known_dirs if not Path(d).is_relative_to(path)}

        events = [
            WatchEvent(kind=WatchEventKind.ADD_DIR, path=p) for p in sorted(dir_adds, key=lambda p: (_depth(p), p))
        ]
        events += [WatchEvent(kind=kind, path=p) for p, kind in sorted(file_writes)]
        events += [WatchEvent(kind=WatchEventKind.UNLINK, path=p) for p in sorted(file_removals)]
        events += [
            WatchEvent(kind=WatchEventKind.UNLINK_DIR, path=p)
            for p in sorted(dir_removals, key=lambda p: (-_depth(p), p))
        ]
        return events

    async def _watch(self) -> None:
        async for changes in awatch(self._directory):
            events = self.to_events(changes)
            if events:
                logger.debug("Detected %d change(s)", len(events))
            for event in events:
                try:
                    await self._on_event(event)
                except Exception:
                    logger.exception("Build failed while handling %s %s", event.kind.value, event.path)
