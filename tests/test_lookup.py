"""
Unit tests for manifest discovery and unit lookup.
"""

import pytest

from forkwatch.core.errors import NotFoundError
from forkwatch.core.units.lookup import find_manifest, iter_manifests


@pytest.fixture
def project(temp_dir, make_unit):
    """
    Creates:
    - src/Widget.manifest.ts (+ v1)
    - src/forms/date-picker.manifest.ts (+ v1)
    - node_modules/lib/Dep.manifest.ts
    - .cache/Hidden.manifest.ts
    """
    make_unit(temp_dir / "src", "Widget", manifest="")
    make_unit(temp_dir / "src" / "forms", "date-picker", manifest="")
    make_unit(temp_dir / "node_modules" / "lib", "Dep", manifest="")
    make_unit(temp_dir / ".cache", "Hidden", manifest="")
    return temp_dir


class TestIterManifests:
    """Test recursive discovery."""

    def test_skips_hidden_and_dependency_dirs(self, project):
        """Test only project manifests are found, in a stable order."""
        names = [p.name for p in iter_manifests(project)]
        assert names == ["Widget.manifest.ts", "date-picker.manifest.ts"]

    def test_extra_ignore_dirs(self, project):
        """Test configured directory names are skipped too."""
        names = [p.name for p in iter_manifests(project, {"forms"})]
        assert names == ["Widget.manifest.ts"]


class TestFindManifest:
    """Test resolving user references to a manifest."""

    def test_manifest_path(self, project):
        """Test a manifest path resolves to itself."""
        path = project / "src" / "Widget.manifest.ts"
        assert find_manifest(path) == path.resolve()

    def test_directory(self, project):
        """Test a directory resolves to the manifest inside it."""
        assert find_manifest("src/forms", root=project).name == "date-picker.manifest.ts"

    def test_unit_file(self, project):
        """Test a version file resolves to its unit's manifest."""
        assert find_manifest(project / "src" / "Widget.v1.tsx").name == "Widget.manifest.ts"

    def test_bare_name(self, project):
        """Test a bare unit name is searched for recursively."""
        assert find_manifest("date-picker", root=project).parent.name == "forms"

    def test_not_found(self, project):
        """Test unknown references raise NotFoundError."""
        with pytest.raises(NotFoundError, match="Unit not found: Missing"):
            find_manifest("Missing", root=project)

    def test_dependency_dirs_not_searched(self, project):
        """Test bare names never resolve inside dependency directories."""
        with pytest.raises(NotFoundError):
            find_manifest("Dep", root=project)
