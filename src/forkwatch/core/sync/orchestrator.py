"""
Synchronization orchestrator.

Owns every unit manager under a root directory and routes filesystem events
and control-plane commands to them.

Architecture:
- UnitRegistry holds the managers, keyed by unit name
- WatchdogBridge turns observer-thread callbacks into ``dispatch`` calls on
  the event loop
- Debouncer delays reconciliation by SETTLE_WINDOW so paired operations
  settle; a new event for the same unit replaces the pending timer
- Every piece of work on a unit runs under that unit's asyncio.Lock, with
  blocking filesystem calls offloaded to a worker thread
- Listeners are notified with the affected unit and a fresh snapshot after
  any change

Event Flow:
1. Manifest added: register a manager, regenerate, broadcast
2. Manifest removed: unregister, broadcast
3. Manifest changed: debounce, reconcile manifest keys
4. Version file added/changed/removed: debounce, reconcile the file set,
   falling back to a plain regenerate

Usage:
    from forkwatch.core.sync.orchestrator import SyncOrchestrator

    orchestrator = SyncOrchestrator(Path("src"), config)
    orchestrator.add_listener(on_change)
    await orchestrator.start()
    ...
    await orchestrator.stop()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

from watchdog.observers import Observer

from forkwatch.core.config.models import ForkwatchConfig
from forkwatch.core.errors import ForkwatchError, NotFoundError
from forkwatch.core.sync.registry import UnitRegistry
from forkwatch.core.sync.timers import Debouncer, SuppressionWindow
from forkwatch.core.sync.watcher import ADD, UNLINK, WatchdogBridge
from forkwatch.core.units.lookup import iter_manifests
from forkwatch.core.units.manager import UnitManager
from forkwatch.core.units.models import UnitsSnapshot
from forkwatch.core.versions import is_manifest_file

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[str, str, UnitsSnapshot], Awaitable[None]]


class SyncOrchestrator:
    """
    Coordinates all units under a root directory.

    Example:
        >>> orchestrator = SyncOrchestrator(Path("src"))
        >>> await orchestrator.start(watch=False)
        >>> orchestrator.registry.names()
        ['Widget']
    """

    def __init__(
        self,
        root: Path | str,
        config: ForkwatchConfig | None = None,
        *,
        registry: UnitRegistry | None = None,
        debouncer: Debouncer | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            root: Directory tree to synchronize
            config: Loaded configuration (defaults when None)
            registry: Registry to populate (a new one when None)
            debouncer: Settle-window timers (SETTLE_WINDOW when None)
        """
        self.root = Path(root).resolve()
        self.config = config or ForkwatchConfig()
        self.registry = registry or UnitRegistry()
        self.debouncer = debouncer or Debouncer()
        self.ignore_dirs = frozenset(self.config.watch.ignore_dirs)

        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._listeners: list[Listener] = []
        self._observer: Any = None
        self._started = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def discover(self) -> list[Path]:
        """Find every manifest under the root. Blocking."""
        manifests = list(iter_manifests(self.root, self.ignore_dirs))
        logger.info("Found %d manifest(s) under %s", len(manifests), self.root)
        return manifests

    def create_manager(self, manifest_path: Path) -> UnitManager:
        return UnitManager(
            manifest_path,
            lazy=self.config.watch.lazy,
            extensions=tuple(self.config.watch.extensions),
            suppression=SuppressionWindow(),
        )

    async def start(self, watch: bool = True) -> None:
        """
        Discover units, bring each manifest up to date, then start watching.

        No event is dispatched before every discovered unit has been
        regenerated.
        """
        for manifest in await asyncio.to_thread(self.discover):
            self.registry.register(self.create_manager(manifest))

        for manager in self.registry:
            try:
                await self.run_exclusive(manager.name, self._initialize, manager)
            except ForkwatchError as e:
                logger.error("[%s] Initial sync failed: %s", manager.name, e)

        if not len(self.registry):
            logger.info("No versioned units found under %s", self.root)

        if watch:
            self._start_observer()
        self._started = True

    async def stop(self) -> None:
        """Cancel pending timers, wait for running work and stop the observer."""
        self.debouncer.cancel_all()
        await self.debouncer.wait_idle()
        if self._observer is not None:
            observer, self._observer = self._observer, None
            observer.stop()
            await asyncio.to_thread(observer.join)
            logger.info("Stopped watching %s", self.root)
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    def _start_observer(self) -> None:
        handler = WatchdogBridge(
            self.root, asyncio.get_running_loop(), self.dispatch, self.ignore_dirs
        )
        observer = Observer()
        observer.schedule(handler, str(self.root), recursive=True)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.info("Watching %s", self.root)

    @staticmethod
    def _initialize(manager: UnitManager) -> None:
        manager.regenerate()
        manager.refresh_previous_metadata()

    # =========================================================================
    # Serialized execution
    # =========================================================================

    def lock_for(self, name: str) -> asyncio.Lock:
        lock = self._locks.get(name)
        if lock is None:
            lock = self._locks[name] = asyncio.Lock()
        return lock

    async def run_exclusive(self, name: str, fn: Callable[..., T], *args: Any) -> T:
        """
        Run a blocking function in a worker thread under the unit's lock.

        Work for the same unit is serialized; different units run in
        parallel.
        """
        lock = self.lock_for(name)
        self._lock_users[name] = self._lock_users.get(name, 0) + 1
        try:
            async with lock:
                return await asyncio.to_thread(fn, *args)
        finally:
            self._lock_users[name] -= 1
            self._discard_lock_if_idle(name)

    def _discard_lock_if_idle(self, name: str) -> None:
        """Drop the lock of an unregistered unit once nothing holds or awaits it."""
        if self.registry.get(name) is not None or self._lock_users.get(name, 0) > 0:
            return
        self._lock_users.pop(name, None)
        self._locks.pop(name, None)

    def remove_unit(self, name: str) -> UnitManager | None:
        """
        Stop tracking a unit.

        Pending timers are cancelled. Work already running under the unit's
        lock finishes first; the lock is dropped after it.
        """
        self.debouncer.cancel((name, "files"))
        self.debouncer.cancel((name, "manifest"))
        manager = self.registry.unregister(name)
        self._discard_lock_if_idle(name)
        return manager

    def get_manager(self, name: str | None) -> UnitManager:
        """
        Raises:
            NotFoundError: If no unit has that name
        """
        manager = self.registry.get(name) if name else None
        if manager is None:
            raise NotFoundError(f"Unit not found: {name}")
        return manager

    # =========================================================================
    # Event dispatch
    # =========================================================================

    async def dispatch(self, event_type: str, path: Path | str) -> None:
        """
        Route one filesystem event.

        Args:
            event_type: "add", "change" or "unlink"
            path: Path of the affected file
        """
        path = Path(path)
        logger.debug("Event %s %s", event_type, path)

        if is_manifest_file(path):
            await self._dispatch_manifest(event_type, path)
            return

        manager = self.registry.owner_of(path)
        if manager is None:
            return
        name = manager.name
        self.debouncer.schedule((name, "files"), lambda: self._reconcile_files(name))

    async def _dispatch_manifest(self, event_type: str, path: Path) -> None:
        manager = self.registry.find_by_manifest(path)

        if event_type == UNLINK:
            if manager is None:
                return
            self.remove_unit(manager.name)
            await self.broadcast(manager.name, f"Unit {manager.name} removed")
            return

        if manager is None:
            if event_type != ADD and not path.exists():
                return
            new_manager = self.create_manager(path)
            if not self.registry.register(new_manager):
                return
            try:
                await self.run_exclusive(new_manager.name, self._initialize, new_manager)
            except ForkwatchError as e:
                logger.error("[%s] Initial sync failed: %s", new_manager.name, e)
            await self.broadcast(new_manager.name, f"Unit {new_manager.name} added")
            return

        # Re-adding a registered manifest is an in-place change
        name = manager.name
        self.debouncer.schedule((name, "manifest"), lambda: self._reconcile_manifest(name))

    async def _reconcile_files(self, name: str) -> None:
        manager = self.registry.get(name)
        if manager is None:
            return
        try:
            changed = await self.run_exclusive(name, self._reconcile_files_sync, manager)
        except ForkwatchError as e:
            logger.error("[%s] Reconcile failed: %s", name, e)
            return
        except Exception:
            logger.exception("[%s] Unexpected error during reconcile", name)
            return
        if changed:
            await self.broadcast(name, f"Versions of {name} changed")

    @staticmethod
    def _reconcile_files_sync(manager: UnitManager) -> bool:
        if manager.handle_file_rename():
            return True
        return manager.regenerate()

    async def _reconcile_manifest(self, name: str) -> None:
        manager = self.registry.get(name)
        if manager is None:
            return
        try:
            changed = await self.run_exclusive(name, manager.handle_versions_key_change)
        except ForkwatchError as e:
            logger.error("[%s] Manifest reconcile failed: %s", name, e)
            return
        except Exception:
            logger.exception("[%s] Unexpected error during manifest reconcile", name)
            return
        if changed:
            await self.broadcast(name, f"Manifest of {name} changed")

    # =========================================================================
    # Broadcast
    # =========================================================================

    def add_listener(self, listener: Listener) -> None:
        """Register ``listener(unit, message, snapshot)`` for change notifications."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def snapshot(self) -> UnitsSnapshot:
        return await asyncio.to_thread(self.registry.snapshot)

    async def broadcast(self, name: str, message: str) -> UnitsSnapshot:
        """Notify every listener that ``name`` changed."""
        snapshot = await self.snapshot()
        logger.info("[%s] %s", name, message)
        for listener in list(self._listeners):
            try:
                await listener(name, message, snapshot)
            except Exception:
                logger.exception("Change listener failed for %s", name)
        return snapshot
