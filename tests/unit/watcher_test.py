"""Tests for the watchfiles watcher adapter."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from watchfiles import Change

from lua_modkit.models import WatchEvent, WatchEventKind
from lua_modkit.watcher.watchfiles_adapter import WatchfilesWatcher


class TestToEvents:
    def test_orders_directories_files_and_deletions(self, tmp_path: Path) -> None:
        (tmp_path / "old" / "deep").mkdir(parents=True)
        watcher = WatchfilesWatcher(tmp_path, AsyncMock())
        watcher._known_dirs = {str(tmp_path / "old"), str(tmp_path / "old" / "deep")}
        (tmp_path / "new" / "inner").mkdir(parents=True)
        (tmp_path / "new" / "a.ts").write_text("", encoding="utf-8")
        (tmp_path / "b.lua").write_text("", encoding="utf-8")

        events = watcher.to_events(
            [
                (Change.deleted, str(tmp_path / "old")),
                (Change.added, str(tmp_path / "new" / "a.ts")),
                (Change.deleted, str(tmp_path / "gone.ts")),
                (Change.added, str(tmp_path / "new" / "inner")),
                (Change.deleted, str(tmp_path / "old" / "deep")),
                (Change.modified, str(tmp_path / "b.lua")),
                (Change.added, str(tmp_path / "new")),
            ]
        )

        assert events == [
            WatchEvent(kind=WatchEventKind.ADD_DIR, path=str(tmp_path / "new")),
            WatchEvent(kind=WatchEventKind.ADD_DIR, path=str(tmp_path / "new" / "inner")),
            WatchEvent(kind=WatchEventKind.CHANGE, path=str(tmp_path / "b.lua")),
            WatchEvent(kind=WatchEventKind.ADD, path=str(tmp_path / "new" / "a.ts")),
            WatchEvent(kind=WatchEventKind.UNLINK, path=str(tmp_path / "gone.ts")),
            WatchEvent(kind=WatchEventKind.UNLINK_DIR, path=str(tmp_path / "old" / "deep")),
            WatchEvent(kind=WatchEventKind.UNLINK_DIR, path=str(tmp_path / "old")),
        ]
        assert str(tmp_path / "new") in watcher._known_dirs
        assert str(tmp_path / "old" / "deep") not in watcher._known_dirs

    def test_modified_directory_is_ignored(self, tmp_path: Path) -> None:
        watcher = WatchfilesWatcher(tmp_path, AsyncMock())
        assert watcher.to_events([(Change.modified, str(tmp_path))]) == []


class TestWatchfilesWatcher:
    def test_implements_protocol(self) -> None:
        from lua_modkit.core.ports.watcher import FileWatcherPort

        callback = AsyncMock()
        watcher: FileWatcherPort = WatchfilesWatcher("/tmp", callback)
        assert hasattr(watcher, "start")
        assert hasattr(watcher, "stop")

    @pytest.mark.asyncio
    async def test_start_creates_task(self, tmp_path: Path) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher(tmp_path, callback)

        with patch("lua_modkit.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _empty_async_iter()
            await watcher.start()
            assert watcher._task is not None
            await watcher.stop()
            assert watcher._task is None

    @pytest.mark.asyncio
    async def test_start_records_existing_directories(self, tmp_path: Path) -> None:
        (tmp_path / "client" / "ui").mkdir(parents=True)
        watcher = WatchfilesWatcher(tmp_path, AsyncMock())

        with patch("lua_modkit.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _empty_async_iter()
            await watcher.start()
            await watcher.stop()

        assert watcher._known_dirs == {str(tmp_path / "client"), str(tmp_path / "client" / "ui")}

    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher("/tmp", callback)
        await watcher.stop()  # should not raise

    @pytest.mark.asyncio
    async def test_double_start_is_noop(self, tmp_path: Path) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher(tmp_path, callback)

        with patch("lua_modkit.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _empty_async_iter()
            await watcher.start()
            task1 = watcher._task
            await watcher.start()
            assert watcher._task is task1  # same task
            await watcher.stop()

    @pytest.mark.asyncio
    async def test_callback_receives_events_one_at_a_time(self, tmp_path: Path) -> None:
        seen: list[WatchEvent] = []

        async def callback(event: WatchEvent) -> None:
            seen.append(event)

        watcher = WatchfilesWatcher(tmp_path, callback)
        changes = {(Change.deleted, str(tmp_path / "a.ts")), (Change.deleted, str(tmp_path / "b.ts"))}

        with patch("lua_modkit.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _single_change_iter(changes)
            await watcher.start()
            await asyncio.sleep(0.05)
            await watcher.stop()

        assert seen == [
            WatchEvent(kind=WatchEventKind.UNLINK, path=str(tmp_path / "a.ts")),
            WatchEvent(kind=WatchEventKind.UNLINK, path=str(tmp_path / "b.ts")),
        ]

    @pytest.mark.asyncio
    async def test_failing_callback_keeps_watching(self, tmp_path: Path) -> None:
        callback = AsyncMock(side_effect=[OSError("build failed"), None])
        watcher = WatchfilesWatcher(tmp_path, callback)
        changes = {(Change.deleted, str(tmp_path / "a.ts")), (Change.deleted, str(tmp_path / "b.ts"))}

        with patch("lua_modkit.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _single_change_iter(changes)
            await watcher.start()
            await asyncio.sleep(0.05)
            assert watcher._task is not None
            assert not watcher._task.done()
            await watcher.stop()

        assert callback.call_count == 2


async def _empty_async_iter() -> AsyncIterator[Any]:
    """Async iterator that never yields, just blocks until cancelled."""
    try:
        await asyncio.sleep(3600)
    except asyncio.CancelledError:
        return
    yield  # make it an async generator  # pragma: no cover


async def _single_change_iter(changes: set[tuple[Change, str]]) -> AsyncIterator[set[tuple[Change, str]]]:
    """Async iterator that yields one set of changes then blocks."""
    yield changes
    try:
        await asyncio.sleep(3600)
    except asyncio.CancelledError:
        return
