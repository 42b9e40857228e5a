"""
Unit tests for the manifest renderer.

Tests ordering, metadata preservation, label transfers, lazy output and
in-place label edits.
"""

from pathlib import Path

import pytest

from forkwatch.core.errors import NotFoundError
from forkwatch.core.manifest import parse, project_versions, render, replace_label
from forkwatch.core.versions import VersionFile, VersionMetadata, parse_key


def files(*names: str, directory: Path = Path("/src")) -> list[VersionFile]:
    result = []
    for name in names:
        key = name.split(".")[1]
        result.append(VersionFile(key=key, path=directory / name, number=parse_key(key)))
    return result


class TestRender:
    """Test rendering manifest text."""

    def test_static_imports_and_blocks(self):
        """Test the default output shape."""
        text = render("Widget", files("Widget.v1.tsx", "Widget.v2.ts"), {})
        assert 'import WidgetV1 from "./Widget.v1"' in text
        assert 'import WidgetV2 from "./Widget.v2"' in text
        assert "export const VERSIONS = {" in text
        assert '  "v1": {\n    render: WidgetV1,\n    label: "",\n  }' in text
        assert text.startswith("/**\n * THIS FILE IS GENERATED by forkwatch.")
        assert "forkwatch promote Widget <version-id>" in text

    def test_numeric_order(self):
        """Test blocks are ordered by (major, minor) regardless of input order."""
        text = render(
            "Widget",
            files("Widget.v10.tsx", "Widget.v2.tsx", "Widget.v1_2.tsx", "Widget.v1.tsx"),
            {},
        )
        positions = [text.index(f'"{key}": {{') for key in ("v1", "v1_2", "v2", "v10")]
        assert positions == sorted(positions)

    def test_idempotent(self):
        """Test rendering the parsed output again yields identical bytes."""
        previous = {"v1": VersionMetadata(label="Original", description="First cut")}
        first = render("Widget", files("Widget.v1.tsx", "Widget.v2.tsx"), previous)
        second = render("Widget", files("Widget.v1.tsx", "Widget.v2.tsx"), parse(first))
        assert first == second

    def test_preserves_labels_and_descriptions(self):
        """Test existing metadata survives regeneration."""
        previous = {"v2": VersionMetadata(label="Compact", description="Denser")}
        text = render("Widget", files("Widget.v1.tsx", "Widget.v2.tsx"), previous)
        assert parse(text) == {
            "v1": VersionMetadata(label=""),
            "v2": VersionMetadata(label="Compact", description="Denser"),
        }

    def test_labels_of_removed_versions_dropped(self):
        """Test metadata for keys with no file is not carried over."""
        previous = {"v9": VersionMetadata(label="Gone")}
        text = render("Widget", files("Widget.v1.tsx"), previous)
        assert "Gone" not in text

    def test_lazy_imports(self):
        """Test lazy mode emits React.lazy loaders."""
        text = render("Widget", files("Widget.v1.tsx"), {}, lazy=True)
        assert "import { lazy } from 'react';" in text
        assert 'const WidgetV1 = lazy(() => import("./Widget.v1"));' in text
        assert "import WidgetV1 from" not in text

    def test_special_characters_escaped(self):
        """Test labels with quotes and newlines remain valid literals."""
        previous = {"v1": VersionMetadata(label='Say "hi"\nnow')}
        text = render("Widget", files("Widget.v1.tsx"), previous)
        assert parse(text)["v1"].label == 'Say "hi"\nnow'


class TestTransfers:
    """Test label transfer on rename."""

    def test_transfer_consumed(self):
        """Test a pending transfer moves the label and is removed once applied."""
        pending = {"v3": "v1"}
        versions = project_versions(
            "Widget",
            files("Widget.v2.tsx", "Widget.v3.tsx"),
            {"v1": VersionMetadata(label="Original")},
            pending,
        )
        assert [(v.key, v.label) for v in versions] == [("v2", ""), ("v3", "Original")]
        assert pending == {}

    def test_transfer_prefers_current_manifest(self):
        """Test the manifest as parsed now wins over stale cached metadata."""
        versions = project_versions(
            "Widget",
            files("Widget.v3.tsx"),
            {"v1": VersionMetadata(label="Edited")},
            {"v3": "v1"},
            transfer_metadata={"v1": VersionMetadata(label="Stale")},
        )
        assert versions[0].label == "Edited"

    def test_transfer_falls_back_to_cache(self):
        """Test the cache is used once the source key left the manifest."""
        versions = project_versions(
            "Widget",
            files("Widget.v3.tsx"),
            {},
            {"v3": "v1"},
            transfer_metadata={"v1": VersionMetadata(label="Cached")},
        )
        assert versions[0].label == "Cached"

    def test_transfer_for_missing_target_is_kept(self):
        """Test transfers whose target has no file yet stay pending."""
        pending = {"v5": "v1"}
        project_versions("Widget", files("Widget.v1.tsx"), {}, pending)
        assert pending == {"v5": "v1"}


class TestReplaceLabel:
    """Test in-place label edits."""

    def test_only_label_changes(self):
        """Test the rest of the file, including hand edits, is untouched."""
        text = 'export const VERSIONS = {\n  "v1": { render: A,   label: "Old" }, // note\n}\n'
        updated = replace_label(text, "v1", "New")
        assert updated == text.replace('"Old"', '"New"')

    def test_inserts_missing_label(self):
        """Test a block without a label gets one."""
        text = 'export const VERSIONS = { "v1": { render: A } }'
        updated = replace_label(text, "v1", "Fresh")
        assert parse(updated)["v1"].label == "Fresh"

    def test_unknown_key(self):
        """Test labelling a version absent from the manifest raises NotFoundError."""
        with pytest.raises(NotFoundError):
            replace_label('export const VERSIONS = { "v1": { label: "" } }', "v2", "x")
