"""
Pytest configuration and shared fixtures.

Provides fixtures for temp directories, versioned unit layouts, managers
and config isolation used across the test suite.
"""

from collections.abc import Callable
from pathlib import Path

import pytest

from forkwatch.core.config import clear_cache
from forkwatch.core.units.manager import UnitManager
from forkwatch.core.versions import version_identifier

# ==============================================================================
# Environment Isolation
# ==============================================================================

ENV_VARS = (
    "FORKWATCH_HOST",
    "FORKWATCH_PORT",
    "FORKWATCH_LAZY",
    "FORKWATCH_EXTENSIONS",
    "PORT",
    "EDITOR",
)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep user config, env vars and the config cache out of every test."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    clear_cache()
    yield
    clear_cache()


# ==============================================================================
# Directory Fixtures
# ==============================================================================


@pytest.fixture
def temp_dir(tmp_path):
    """Provide a temporary directory for tests."""
    return tmp_path


def version_source(unit: str, key: str) -> str:
    """Minimal component body for a version file."""
    identifier = version_identifier(unit, key)
    return f"export default function {identifier}() {{\n  return null;\n}}\n"


@pytest.fixture
def make_unit() -> Callable[..., Path]:
    """
    Factory that lays out a versioned unit on disk.

    Usage:
        manifest = make_unit(tmp_path, "Widget", {"v1": ".tsx", "v2": ".tsx"})

    Version files get a minimal body. The manifest is written only when
    ``manifest`` text is given; the returned path is where it belongs either way.
    """

    def _make(
        directory: Path,
        name: str = "Widget",
        versions: dict[str, str] | None = None,
        manifest: str | None = None,
    ) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        for key, extension in (versions or {"v1": ".tsx"}).items():
            path = directory / f"{name}.{key}{extension}"
            path.write_text(version_source(name, key))
        manifest_path = directory / f"{name}.manifest.ts"
        if manifest is not None:
            manifest_path.write_text(manifest)
        return manifest_path

    return _make


@pytest.fixture
def unit_dir(temp_dir, make_unit) -> Path:
    """
    Project with one unit "Widget" holding v1 and v2 (.tsx), no manifest yet.

    Creates:
    - src/components/Widget.v1.tsx
    - src/components/Widget.v2.tsx
    """
    directory = temp_dir / "src" / "components"
    make_unit(directory, "Widget", {"v1": ".tsx", "v2": ".tsx"})
    return directory


@pytest.fixture
def manager(unit_dir) -> UnitManager:
    """UnitManager for the Widget unit with a freshly generated manifest."""
    widget = UnitManager(unit_dir / "Widget.manifest.ts")
    widget.regenerate()
    widget.refresh_previous_metadata()
    return widget
