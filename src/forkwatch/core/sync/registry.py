"""
Unit registry.

The set of unit managers currently being synchronized, keyed by unit name.
One registry is created by the orchestrator and handed to the control plane;
there is no module-level instance.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from forkwatch.core.errors import FileIOError
from forkwatch.core.units.manager import UnitManager
from forkwatch.core.units.models import UnitsSnapshot
from forkwatch.core.versions import match_version_file

logger = logging.getLogger(__name__)


class UnitRegistry:
    """Unit managers by name."""

    def __init__(self) -> None:
        self._units: dict[str, UnitManager] = {}

    def register(self, manager: UnitManager) -> bool:
        """
        Add a manager.

        If a different unit with the same name is already registered, the
        existing one is kept and a warning is logged.

        Returns:
            True if the manager was added
        """
        existing = self._units.get(manager.name)
        if existing is not None:
            if existing.manifest_path != manager.manifest_path:
                logger.warning(
                    "Duplicate unit name %r: keeping %s, ignoring %s",
                    manager.name,
                    existing.manifest_path,
                    manager.manifest_path,
                )
            return False
        self._units[manager.name] = manager
        logger.info("Registered unit %s (%s)", manager.name, manager.manifest_path)
        return True

    def unregister(self, name: str) -> UnitManager | None:
        manager = self._units.pop(name, None)
        if manager is not None:
            logger.info("Unregistered unit %s", name)
        return manager

    def get(self, name: str) -> UnitManager | None:
        return self._units.get(name)

    def find_by_manifest(self, path: Path) -> UnitManager | None:
        path = Path(path).resolve()
        for manager in self._units.values():
            if manager.manifest_path == path:
                return manager
        return None

    def owner_of(self, path: Path) -> UnitManager | None:
        """Manager whose version file naming matches ``path``, if any."""
        path = Path(path).resolve()
        for manager in self._units.values():
            if manager.directory != path.parent:
                continue
            if match_version_file(manager.name, path.name, manager.extensions) is not None:
                return manager
        return None

    def names(self) -> list[str]:
        return sorted(self._units)

    def snapshot(self) -> UnitsSnapshot:
        """Current units and their version keys, sorted by name. Reads the filesystem."""
        units = []
        for name in self.names():
            try:
                units.append(self._units[name].info())
            except FileIOError as e:
                logger.warning("Skipping unit %s in snapshot: %s", name, e)
        return UnitsSnapshot(units=units)

    def __contains__(self, name: object) -> bool:
        return name in self._units

    def __iter__(self) -> Iterator[UnitManager]:
        return iter(list(self._units.values()))

    def __len__(self) -> int:
        return len(self._units)
