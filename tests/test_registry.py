"""
Unit tests for UnitRegistry.
"""

import logging

from forkwatch.core.sync.registry import UnitRegistry
from forkwatch.core.units.manager import UnitManager


class TestUnitRegistry:
    """Test registering and looking up units."""

    def test_register_and_lookup(self, unit_dir):
        """Test a registered manager is found by name and manifest."""
        registry = UnitRegistry()
        manager = UnitManager(unit_dir / "Widget.manifest.ts")

        assert registry.register(manager) is True
        assert "Widget" in registry
        assert registry.get("Widget") is manager
        assert registry.find_by_manifest(unit_dir / "Widget.manifest.ts") is manager
        assert len(registry) == 1

    def test_duplicate_name_keeps_first(self, temp_dir, make_unit, caplog):
        """Test a second unit with the same name is ignored with a warning."""
        first = make_unit(temp_dir / "a", "Widget")
        second = make_unit(temp_dir / "b", "Widget")
        registry = UnitRegistry()

        registry.register(UnitManager(first))
        with caplog.at_level(logging.WARNING):
            assert registry.register(UnitManager(second)) is False

        assert registry.get("Widget").manifest_path == first.resolve()
        assert "Duplicate unit name" in caplog.text

    def test_unregister(self, unit_dir):
        """Test unregistering removes the unit and returns its manager."""
        registry = UnitRegistry()
        manager = UnitManager(unit_dir / "Widget.manifest.ts")
        registry.register(manager)

        assert registry.unregister("Widget") is manager
        assert registry.unregister("Widget") is None
        assert "Widget" not in registry

    def test_owner_of(self, unit_dir, make_unit):
        """Test version files map to the unit in the same directory."""
        make_unit(unit_dir, "Other", {"v1": ".tsx"})
        registry = UnitRegistry()
        widget = UnitManager(unit_dir / "Widget.manifest.ts")
        other = UnitManager(unit_dir / "Other.manifest.ts")
        registry.register(widget)
        registry.register(other)

        assert registry.owner_of(unit_dir / "Widget.v9.tsx") is widget
        assert registry.owner_of(unit_dir / "Other.v1.tsx") is other
        assert registry.owner_of(unit_dir / "Widget.tsx") is None
        assert registry.owner_of(unit_dir / "nested" / "Widget.v1.tsx") is None

    def test_snapshot_sorted(self, temp_dir, make_unit):
        """Test snapshots list units by name with their keys."""
        registry = UnitRegistry()
        registry.register(UnitManager(make_unit(temp_dir, "Zeta", {"v1": ".tsx"})))
        registry.register(UnitManager(make_unit(temp_dir, "Alpha", {"v2": ".tsx", "v1": ".tsx"})))

        snapshot = registry.snapshot()

        assert snapshot.names() == ["Alpha", "Zeta"]
        assert snapshot.get("Alpha").versions == ["v1", "v2"]
        assert snapshot.get("Missing") is None

    def test_snapshot_skips_unreadable_units(self, temp_dir, make_unit, caplog):
        """Test a unit whose directory vanished is left out of the snapshot."""
        registry = UnitRegistry()
        registry.register(UnitManager(make_unit(temp_dir / "gone", "Gone")))
        registry.register(UnitManager(make_unit(temp_dir / "kept", "Kept")))
        for path in (temp_dir / "gone").iterdir():
            path.unlink()
        (temp_dir / "gone").rmdir()

        with caplog.at_level(logging.WARNING):
            snapshot = registry.snapshot()

        assert snapshot.names() == ["Kept"]
        assert "Skipping unit Gone" in caplog.text
