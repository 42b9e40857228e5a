"""
Unit tests for VersionService.

Tests the structured mutations: new, duplicate, delete, rename, relabel
and promote, including their failure modes.
"""

import stat

import pytest

from forkwatch.core.errors import ConflictError, NotFoundError, ValidationError
from forkwatch.core.manifest import parse, replace_label
from forkwatch.core.services import CommandResult, VersionService
from forkwatch.core.units.manager import UnitManager


@pytest.fixture
def service():
    return VersionService()


def labels(manager) -> dict[str, str | None]:
    return {key: meta.label for key, meta in parse(manager.read_manifest()).items()}


class TestNewVersion:
    """Test creating versions from the template."""

    def test_allocates_next_major(self, service, manager, unit_dir):
        """Test an omitted key becomes max major + 1."""
        result = service.new_version(manager)

        assert isinstance(result, CommandResult)
        assert result.version == "v3"
        assert result.display_version == "3"
        assert result.message == "Successfully created new version v3"
        path = unit_dir.resolve() / "Widget.v3.tsx"
        assert result.file_path == str(path)
        assert "export default function WidgetV3()" in path.read_text()
        assert "v3" in labels(manager)

    def test_explicit_key(self, service, manager, unit_dir):
        """Test an explicit minor version."""
        result = service.new_version(manager, "v1_2")
        assert result.version == "v1_2"
        assert result.display_version == "1.2"
        assert (unit_dir / "Widget.v1_2.tsx").exists()

    def test_uses_most_common_extension(self, service, temp_dir, make_unit):
        """Test new versions follow the unit's dominant extension."""
        make_unit(temp_dir, "Widget", {"v1": ".js", "v2": ".js"})
        manager = UnitManager(temp_dir / "Widget.manifest.ts")
        service.new_version(manager)
        content = (temp_dir / "Widget.v3.js").read_text()
        assert "React.createElement('div', null, '3')" in content

    def test_existing_key(self, service, manager):
        """Test creating an existing version is a conflict."""
        with pytest.raises(ConflictError, match="already exists"):
            service.new_version(manager, "v2")

    def test_invalid_key(self, service, manager):
        """Test malformed keys are rejected."""
        with pytest.raises(ValidationError, match="Invalid version format"):
            service.new_version(manager, "2.0")


class TestDuplicateVersion:
    """Test forking a version."""

    def test_byte_identical_copy(self, service, manager, unit_dir):
        """Test the copy keeps content and line endings exactly."""
        source = unit_dir / "Widget.v1.tsx"
        source.write_bytes(b"export default function WidgetV1() {}\r\n")

        result = service.duplicate_version(manager, "v1")

        assert result.version == "v3"
        assert result.previous_version == "v1"
        assert (unit_dir / "Widget.v3.tsx").read_bytes() == source.read_bytes()

    def test_new_version_has_empty_label(self, service, manager):
        """Test the duplicate does not inherit the source label."""
        manager.manifest_path.write_text(replace_label(manager.read_manifest(), "v1", "Original"))

        service.duplicate_version(manager, "v1", "v1_2")

        assert labels(manager) == {"v1": "Original", "v1_2": "", "v2": ""}

    def test_missing_source(self, service, manager):
        """Test duplicating a missing version raises NotFoundError."""
        with pytest.raises(NotFoundError):
            service.duplicate_version(manager, "v9")

    def test_existing_target(self, service, manager):
        """Test duplicating onto an existing version is a conflict."""
        with pytest.raises(ConflictError):
            service.duplicate_version(manager, "v1", "v2")


class TestDeleteVersion:
    """Test deleting versions."""

    def test_deletes_file_and_entry(self, service, manager, unit_dir):
        """Test the file is removed and the manifest updated."""
        result = service.delete_version(manager, "v2")

        assert result.message == "Successfully deleted version v2"
        assert not (unit_dir / "Widget.v2.tsx").exists()
        assert set(labels(manager)) == {"v1"}

    def test_last_version_kept(self, service, manager, unit_dir):
        """Test a unit never drops below one version."""
        service.delete_version(manager, "v2")
        with pytest.raises(ConflictError, match="only version"):
            service.delete_version(manager, "v1")
        assert (unit_dir / "Widget.v1.tsx").exists()

    def test_missing_version(self, service, manager):
        """Test deleting a missing version raises NotFoundError."""
        with pytest.raises(NotFoundError):
            service.delete_version(manager, "v7")


class TestRenameVersion:
    """Test moving a version to a new key."""

    def test_rename_moves_file_and_label(self, service, manager, unit_dir):
        """Test the label follows the version and identifiers are rewritten."""
        manager.manifest_path.write_text(replace_label(manager.read_manifest(), "v2", "Compact"))

        result = service.rename_version(manager, "v2", "v1_5")

        assert result.version == "v1_5"
        assert result.previous_version == "v2"
        assert not (unit_dir / "Widget.v2.tsx").exists()
        content = (unit_dir / "Widget.v1_5.tsx").read_text()
        assert "WidgetV1_5" in content
        assert "WidgetV2" not in content
        assert labels(manager) == {"v1": "", "v1_5": "Compact"}
        assert manager.pending_transfers == {}

    def test_same_key(self, service, manager):
        """Test renaming to the same key is rejected."""
        with pytest.raises(ValidationError):
            service.rename_version(manager, "v1", "v1")

    def test_existing_target(self, service, manager, unit_dir):
        """Test renaming onto an existing version is a conflict and changes nothing."""
        with pytest.raises(ConflictError):
            service.rename_version(manager, "v1", "v2")
        assert (unit_dir / "Widget.v1.tsx").exists()

    def test_missing_new_key(self, service, manager):
        """Test the new key is required."""
        with pytest.raises(ValidationError, match="required"):
            service.rename_version(manager, "v1", "")

    def test_rename_keeps_permissions(self, service, manager, unit_dir):
        """Test the renamed file and the manifest keep their permission bits."""
        (unit_dir / "Widget.v2.tsx").chmod(0o640)
        manager.manifest_path.chmod(0o644)

        service.rename_version(manager, "v2", "v5")

        assert stat.S_IMODE((unit_dir / "Widget.v5.tsx").stat().st_mode) == 0o640
        assert stat.S_IMODE(manager.manifest_path.stat().st_mode) == 0o644


class TestRenameLabel:
    """Test relabelling a version."""

    def test_only_label_changes(self, service, manager, unit_dir):
        """Test the manifest label changes and version files are untouched."""
        before = (unit_dir / "Widget.v1.tsx").read_text()

        result = service.rename_label(manager, "v1", "Original")

        assert result.label == "Original"
        assert labels(manager)["v1"] == "Original"
        assert (unit_dir / "Widget.v1.tsx").read_text() == before

    def test_label_survives_regeneration(self, service, manager, make_unit, unit_dir):
        """Test a new label is preserved when the manifest is regenerated."""
        service.rename_label(manager, "v2", "Compact")
        make_unit(unit_dir, "Widget", {"v3": ".tsx"})
        manager.regenerate()
        assert labels(manager)["v2"] == "Compact"

    def test_missing_label(self, service, manager):
        """Test the new label is required."""
        with pytest.raises(ValidationError):
            service.rename_label(manager, "v1", None)

    def test_unknown_version(self, service, manager):
        """Test relabelling a version not in the manifest."""
        with pytest.raises(NotFoundError):
            service.rename_label(manager, "v8", "x")


class TestPromoteVersion:
    """Test promotion through the service."""

    def test_promote_marks_unit_removed(self, service, manager, unit_dir):
        """Test promotion writes the base file and reports the unit as removed."""
        result = service.promote_version(manager, "v2")

        assert result.unit_removed is True
        assert result.file_path == str(unit_dir.resolve() / "Widget.tsx")
        assert sorted(p.name for p in unit_dir.iterdir()) == ["Widget.tsx"]
