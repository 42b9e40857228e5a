"""
Bridge from watchdog's observer thread to the orchestrator's event loop.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler, FileSystemMovedEvent

from forkwatch.utils.fs import is_ignored_path

logger = logging.getLogger(__name__)

ADD = "add"
CHANGE = "change"
UNLINK = "unlink"
EVENT_TYPES = (ADD, CHANGE, UNLINK)

Dispatch = Callable[[str, Path], Awaitable[None]]


class WatchdogBridge(FileSystemEventHandler):
    """
    Translate watchdog events into ``dispatch(event_type, path)`` calls.

    Callbacks arrive on the observer thread; each is handed to the event
    loop with ``call_soon_threadsafe`` so all dispatching happens on the
    loop. Directory events and paths under hidden or dependency directories
    are dropped. A move becomes an unlink of the source followed by an add
    of the destination.
    """

    def __init__(
        self,
        root: Path,
        loop: asyncio.AbstractEventLoop,
        dispatch: Dispatch,
        ignore_dirs: frozenset[str] = frozenset(),
    ) -> None:
        super().__init__()
        self.root = Path(root).resolve()
        self.loop = loop
        self.dispatch = dispatch
        self.ignore_dirs = ignore_dirs
        self._tasks: set[asyncio.Task[None]] = set()

    def on_created(self, event: FileSystemEvent) -> None:
        self._emit(event, ADD, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._emit(event, CHANGE, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._emit(event, UNLINK, event.src_path)

    def on_moved(self, event: FileSystemMovedEvent) -> None:
        self._emit(event, UNLINK, event.src_path)
        self._emit(event, ADD, event.dest_path)

    def _emit(self, event: FileSystemEvent, event_type: str, raw_path: str | bytes) -> None:
        if event.is_directory:
            return
        path = Path(os.fsdecode(raw_path))
        if is_ignored_path(path, self.root, self.ignore_dirs):
            return
        if self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self._schedule, event_type, path)

    def _schedule(self, event_type: str, path: Path) -> None:
        task = self.loop.create_task(self.dispatch(event_type, path))
        self._tasks.add(task)
        task.add_done_callback(self._done)

    def _done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Dispatch failed", exc_info=task.exception())
