"""
Debounce and suppression timers.

Three windows govern how forkwatch reacts to filesystem activity:

- SETTLE_WINDOW: after a watcher event, wait this long before reconciling
  so paired operations (an editor's write-then-rename) settle first.
- KEY_RENAME_SUPPRESSION_WINDOW: after forkwatch renames a version file
  because a manifest key was hand-edited, file-set reconciliation is
  suppressed for this long so the resulting watcher event does not feed
  back into another rename.
- CLIENT_FALLBACK_WINDOW: how long a UI client waits for a push update
  before re-querying. The engine never waits on it; it is advertised to
  clients through the control plane.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Hashable

logger = logging.getLogger(__name__)

SETTLE_WINDOW = 0.1
KEY_RENAME_SUPPRESSION_WINDOW = 0.5
CLIENT_FALLBACK_WINDOW = 2.5


class Debouncer:
    """
    Keyed, cancellable one-shot timers on an asyncio loop.

    Scheduling a key that already has a pending timer replaces that timer
    rather than stacking a second one.

    Example:
        >>> debouncer = Debouncer(delay=SETTLE_WINDOW)
        >>> debouncer.schedule(("Widget", "files"), reconcile)
    """

    def __init__(
        self,
        delay: float = SETTLE_WINDOW,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.delay = delay
        self._loop = loop
        self._handles: dict[Hashable, asyncio.TimerHandle] = {}
        self._tasks: set[asyncio.Task[object]] = set()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule(self, key: Hashable, callback: Callable[[], object]) -> None:
        """
        Run ``callback`` after the delay unless rescheduled or cancelled.

        A coroutine returned by the callback is run as a task on the loop.
        """
        self.cancel(key)

        def fire() -> None:
            self._handles.pop(key, None)
            result = callback()
            if asyncio.iscoroutine(result):
                task = self.loop.create_task(result)
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)

        self._handles[key] = self.loop.call_later(self.delay, fire)
        logger.debug("Debounce scheduled for %s (%.0fms)", key, self.delay * 1000)

    def cancel(self, key: Hashable) -> bool:
        handle = self._handles.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> None:
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()

    async def wait_idle(self) -> None:
        """Wait for callbacks that already fired and are still running."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def pending(self, key: Hashable) -> bool:
        return key in self._handles

    def __len__(self) -> int:
        return len(self._handles)


class SuppressionWindow:
    """
    A time window during which a handler should ignore its trigger.

    Uses a monotonic clock rather than a scheduled callback, so it works the
    same whether the owner runs on the event loop or in a worker thread.
    """

    def __init__(
        self,
        duration: float = KEY_RENAME_SUPPRESSION_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.duration = duration
        self._clock = clock
        self._until: float | None = None

    def arm(self) -> None:
        """Open the window now; re-arming extends it from the current time."""
        self._until = self._clock() + self.duration

    def clear(self) -> None:
        self._until = None

    @property
    def active(self) -> bool:
        if self._until is None:
            return False
        if self._clock() >= self._until:
            self._until = None
            return False
        return True
