"""
Unit tests for version keys and naming conventions.
"""

import pytest

from forkwatch.core.versions import (
    VersionNumber,
    display_version,
    file_version_to_key,
    is_manifest_file,
    is_valid_key,
    key_to_file_version,
    match_version_file,
    parse_key,
    sort_key,
    to_pascal_case_identifier,
    unit_name_from_manifest,
    version_file_name,
    version_identifier,
)
from forkwatch.core.versions.naming import switcher_file_names

# ==============================================================================
# Version Keys
# ==============================================================================


class TestVersionKeys:
    """Test key grammar and parsing."""

    @pytest.mark.parametrize("key", ["v1", "v10", "v1_2", "v0", "v3_0"])
    def test_valid_keys(self, key):
        """Test keys matching v<major>[_<minor>]."""
        assert is_valid_key(key)

    @pytest.mark.parametrize("key", ["1", "v", "v1.2", "V1", "v1_", "v1_2_3", "va", "", None, 3])
    def test_invalid_keys(self, key):
        """Test malformed keys and non-strings are rejected."""
        assert not is_valid_key(key)

    def test_parse_key(self):
        """Test major/minor extraction, minor defaults to 0."""
        assert parse_key("v2") == VersionNumber(2, 0)
        assert parse_key("v1_2") == VersionNumber(1, 2)

    def test_parse_key_invalid(self):
        """Test parse_key raises ValueError on malformed input."""
        with pytest.raises(ValueError, match="Invalid version key"):
            parse_key("v1.2")

    def test_to_key(self):
        """Test VersionNumber renders back to canonical keys."""
        assert VersionNumber(3).to_key() == "v3"
        assert VersionNumber(3, 1).to_key() == "v3_1"

    def test_numeric_ordering(self):
        """Test keys sort numerically, not lexically."""
        keys = ["v10", "v2", "v1_2", "v1", "v1_10"]
        assert sorted(keys, key=sort_key) == ["v1", "v1_2", "v1_10", "v2", "v10"]

    def test_ordering_ties_broken_by_text(self):
        """Test v3 and v3_0 compare equal numerically but still sort stably."""
        assert sorted(["v3_0", "v3"], key=sort_key) == ["v3", "v3_0"]


# ==============================================================================
# Conversions and Identifiers
# ==============================================================================


class TestConversions:
    """Test key, file-version and display conversions."""

    def test_key_file_version_roundtrip(self):
        """Test v1_2 <-> 1_2."""
        assert key_to_file_version("v1_2") == "1_2"
        assert file_version_to_key("1_2") == "v1_2"

    def test_display_version(self):
        """Test display form uses a dot for the minor part."""
        assert display_version("v1_2") == "1.2"
        assert display_version("v3") == "3"

    def test_version_identifier(self):
        """Test manifest identifiers are Pascal(unit) + V + file version."""
        assert version_identifier("Widget", "v1") == "WidgetV1"
        assert version_identifier("Widget", "v1_2") == "WidgetV1_2"
        assert version_identifier("date-picker", "v2") == "DatePickerV2"

    def test_pascal_case_identifier(self):
        """Test unit names become valid identifiers."""
        assert to_pascal_case_identifier("date-picker") == "DatePicker"
        assert to_pascal_case_identifier("nav_bar") == "NavBar"
        assert to_pascal_case_identifier("3d-view") == "Component3dView"
        assert to_pascal_case_identifier("---") == "Component"


# ==============================================================================
# File Names
# ==============================================================================


class TestFileNames:
    """Test version file and manifest naming."""

    def test_version_file_name(self):
        """Test version file names keep the key's file version."""
        assert version_file_name("Widget", "v1_2", ".tsx") == "Widget.v1_2.tsx"

    def test_match_version_file(self):
        """Test matching files of one unit returns the key."""
        assert match_version_file("Widget", "Widget.v2.tsx") == "v2"
        assert match_version_file("Widget", "Widget.v1_2.js") == "v1_2"

    def test_match_version_file_rejects_others(self):
        """Test other units, manifests and unknown extensions do not match."""
        assert match_version_file("Widget", "Widgets.v2.tsx") is None
        assert match_version_file("Widget", "Widget.manifest.ts") is None
        assert match_version_file("Widget", "Widget.v2.css") is None
        assert match_version_file("Widget", "Widget.v2.tsx.bak") is None

    def test_match_version_file_custom_extensions(self):
        """Test the extension list limits which files match."""
        assert match_version_file("Widget", "Widget.v2.vue", (".vue",)) == "v2"
        assert match_version_file("Widget", "Widget.v2.tsx", (".vue",)) is None

    def test_manifest_detection(self):
        """Test manifest files are recognised by suffix."""
        assert is_manifest_file("src/Widget.manifest.ts")
        assert not is_manifest_file(".manifest.ts")
        assert not is_manifest_file("Widget.v1.tsx")

    def test_unit_name_from_manifest(self):
        """Test unit names drop a stray source extension."""
        assert unit_name_from_manifest("Widget.manifest.ts") == "Widget"
        assert unit_name_from_manifest("Widget.tsx.manifest.ts") == "Widget"
        assert unit_name_from_manifest("date-picker.manifest.ts") == "date-picker"

    def test_switcher_file_names(self):
        """Test switcher scaffolding names cover each extension."""
        assert switcher_file_names("Widget", (".tsx", ".ts")) == [
            "Widget.UISwitcher.tsx",
            "Widget.UISwitcher.ts",
            "Widget.switcher.tsx",
            "Widget.switcher.ts",
        ]
