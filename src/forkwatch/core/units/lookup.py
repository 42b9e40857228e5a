"""
Resolve a unit from a user-supplied reference.

A reference may be a manifest path, a directory containing a manifest, a
unit source file (``Widget.tsx``), or a bare unit name searched for
recursively below a root directory.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

from forkwatch.core.errors import NotFoundError
from forkwatch.core.versions import is_manifest_file, manifest_file_name
from forkwatch.utils.fs import is_ignored_dir

logger = logging.getLogger(__name__)


def iter_manifests(root: Path, ignore_dirs: frozenset[str] | set[str] = frozenset()) -> Iterator[Path]:
    """
    Yield every manifest below ``root`` in a stable order.

    Hidden and dependency directories are skipped. Unreadable directories are
    logged and skipped.
    """

    def on_error(error: OSError) -> None:
        logger.warning("Could not read directory %s: %s", error.filename, error.strerror)

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        dirnames[:] = sorted(d for d in dirnames if not is_ignored_dir(d, ignore_dirs))
        for filename in sorted(filenames):
            if is_manifest_file(filename):
                yield Path(dirpath) / filename


def find_manifest(reference: str | Path, root: Path | None = None) -> Path:
    """
    Find the manifest for a unit reference.

    Args:
        reference: Manifest path, directory, unit file or unit name
        root: Where to search by name (defaults to the current directory)

    Returns:
        Resolved manifest path

    Raises:
        NotFoundError: If no manifest matches
    """
    text = str(reference)
    path = Path(text).expanduser()
    if not path.is_absolute() and root is not None:
        path = root / path

    if path.is_file() and is_manifest_file(path):
        return path.resolve()

    if path.is_dir():
        manifests = sorted(p for p in path.iterdir() if p.is_file() and is_manifest_file(p))
        if manifests:
            return manifests[0].resolve()

    if path.is_file():
        candidate = path.with_name(manifest_file_name(path.name.split(".", 1)[0]))
        if candidate.is_file():
            return candidate.resolve()

    if "/" not in text and "\\" not in text:
        wanted = manifest_file_name(text)
        for manifest in iter_manifests(root or Path.cwd()):
            if manifest.name == wanted:
                return manifest.resolve()

    raise NotFoundError(f"Unit not found: {text}")
