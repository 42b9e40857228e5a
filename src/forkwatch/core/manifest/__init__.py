"""
Manifest codec.

Parses and renders ``<Unit>.manifest.ts`` while preserving hand-edited
labels and descriptions across regeneration.
"""

from .parser import ManifestDocument, ManifestEntry, parse, parse_document
from .renderer import project_versions, render, render_manifest, replace_label

__all__ = [
    "ManifestDocument",
    "ManifestEntry",
    "parse",
    "parse_document",
    "project_versions",
    "render",
    "render_manifest",
    "replace_label",
]
