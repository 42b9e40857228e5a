"""
Unit manager.

Keeps one unit's version files and its generated manifest in sync. The
manager is the per-unit state machine the orchestrator drives:

- Discover: list ``<Unit>.v<major>[_<minor>].<ext>`` files in the unit's
  directory.
- Regenerate: render the manifest from the files on disk and the metadata
  already in the manifest, then write it in one replace.
- Reconcile on file-set change: a single removed + single added file is
  treated as a rename so the label follows the file.
- Reconcile on manifest-key change: a single renamed key in the manifest is
  mirrored onto the version file.

All methods are synchronous and do blocking filesystem work. The
orchestrator calls them from a worker thread while holding the unit's lock.
"""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path

from forkwatch.core.errors import (
    FileIOError,
    ManifestSyntaxError,
    NotFoundError,
    ValidationError,
)
from forkwatch.core.manifest import parse, parse_document, render
from forkwatch.core.sync.timers import SuppressionWindow
from forkwatch.core.units.models import UnitInfo
from forkwatch.core.versions import (
    DEFAULT_EXTENSIONS,
    VersionFile,
    VersionMetadata,
    VersionNumber,
    is_valid_key,
    match_version_file,
    parse_key,
    sort_key,
    unit_name_from_manifest,
    version_file_name,
)
from forkwatch.utils.fs import read_text, rename_file, write_text_atomic

logger = logging.getLogger(__name__)


class UnitManager:
    """
    Synchronization state for one versioned unit.

    Args:
        manifest_path: Path to ``<Unit>.manifest.ts``
        lazy: Render lazy-loading imports in the manifest
        extensions: Version file extensions in probe priority order
        suppression: Window that blocks file-set reconciliation after a
            rename driven by a manifest key edit

    Example:
        >>> manager = UnitManager(Path("src/Widget.manifest.ts"))
        >>> manager.regenerate()
        >>> manager.version_keys()
        ['v1', 'v2']
    """

    def __init__(
        self,
        manifest_path: Path,
        *,
        lazy: bool = False,
        extensions: tuple[str, ...] = DEFAULT_EXTENSIONS,
        suppression: SuppressionWindow | None = None,
    ) -> None:
        self.manifest_path = Path(manifest_path).resolve()
        self.directory = self.manifest_path.parent
        self.name = unit_name_from_manifest(self.manifest_path)
        self.lazy = lazy
        self.extensions = tuple(extensions) or DEFAULT_EXTENSIONS
        self.suppression = suppression or SuppressionWindow()

        # Snapshots taken at the last regeneration, used for diffing
        self._last_files: set[str] = set()
        self._last_keys: set[str] = set()

        self._pending_transfers: dict[str, str] = {}
        self._previous_metadata: dict[str, VersionMetadata] = {}

    def __repr__(self) -> str:
        return f"UnitManager(name={self.name!r}, directory={str(self.directory)!r})"

    # =========================================================================
    # Discovery
    # =========================================================================

    def version_files(self) -> list[VersionFile]:
        """
        Discover the unit's version files.

        When several files exist for the same key, the one whose extension
        comes first in the priority order wins.

        Returns:
            Version files sorted by (major, minor)

        Raises:
            FileIOError: If the directory cannot be listed
        """
        try:
            entries = [entry for entry in self.directory.iterdir() if entry.is_file()]
        except OSError as e:
            raise FileIOError(
                f"Failed to list {self.directory}: {e.strerror or e}", self.directory
            ) from e

        by_key: dict[str, Path] = {}
        for entry in entries:
            key = match_version_file(self.name, entry.name, self.extensions)
            if key is None:
                continue
            current = by_key.get(key)
            if current is None or self._priority(entry.suffix) < self._priority(current.suffix):
                by_key[key] = entry

        return [
            VersionFile(key=key, path=path, number=parse_key(key))
            for key, path in sorted(by_key.items(), key=lambda item: sort_key(item[0]))
        ]

    def version_keys(self) -> list[str]:
        return [file.key for file in self.version_files()]

    def find_version_file(self, key: str) -> Path | None:
        """Return the existing file for ``key``, or None."""
        for ext in self.extensions:
            candidate = self.directory / version_file_name(self.name, key, ext)
            if candidate.is_file():
                return candidate
        return None

    def get_version_file_path(self, key: str) -> Path:
        """Existing file for ``key``, else the path it would have with the default extension."""
        existing = self.find_version_file(key)
        if existing is not None:
            return existing
        return self.directory / version_file_name(self.name, key, self.extensions[0])

    def require_version_file(self, key: str) -> Path:
        """
        Resolve the file backing ``key``.

        Raises:
            ValidationError: If the key is malformed
            NotFoundError: If no file exists for the key
        """
        self.validate_key(key)
        path = self.find_version_file(key)
        if path is None:
            raise NotFoundError(f"Version {key} not found for {self.name}")
        return path

    def get_next_version_number(self) -> VersionNumber:
        """Next allocation always bumps the major number: (max major + 1, 0)."""
        majors = [file.number.major for file in self.version_files()]
        return VersionNumber(max(majors, default=0) + 1, 0)

    def most_common_extension(self) -> str:
        """Most frequent extension among version files; ties go to the higher priority one."""
        counts = Counter(file.extension for file in self.version_files())
        if not counts:
            return self.extensions[0]
        return max(counts, key=lambda ext: (counts[ext], -self._priority(ext)))

    def validate_key(self, key: object) -> str:
        if not is_valid_key(key):
            raise ValidationError(
                f"Invalid version format: {key!r}. Expected v1, v2, v1_2, etc."
            )
        return str(key)

    # =========================================================================
    # Manifest
    # =========================================================================

    def read_manifest(self) -> str | None:
        """Current manifest text, or None if the file does not exist."""
        if not self.manifest_path.exists():
            return None
        return read_text(self.manifest_path)

    def read_metadata(self) -> dict[str, VersionMetadata]:
        text = self.read_manifest()
        return parse(text) if text else {}

    def regenerate(self) -> bool:
        """
        Rewrite the manifest from the files on disk.

        Snapshots the current file and key sets first. A manifest whose
        rendered content is unchanged is not rewritten, so repeated calls
        never produce watcher events of their own.

        Returns:
            True if the manifest file was written

        Raises:
            FileIOError: If reading the directory or writing the manifest fails
        """
        files = self.version_files()
        self._last_files = {file.filename for file in files}
        self._last_keys = {file.key for file in files}

        if not files:
            logger.warning("[%s] No version files found in %s", self.name, self.directory)
            return False

        existing = self.read_manifest()
        previous = parse(existing) if existing else {}
        content = render(
            self.name,
            files,
            previous,
            self._pending_transfers,
            transfer_metadata=self._previous_metadata,
            lazy=self.lazy,
        )

        if content == existing:
            logger.debug("[%s] Manifest unchanged", self.name)
            return False

        write_text_atomic(self.manifest_path, content)
        logger.info("[%s] Generated manifest with %d versions", self.name, len(files))
        return True

    def refresh_previous_metadata(self) -> None:
        """Cache the manifest's metadata for transfers applied after it changes."""
        self._previous_metadata = self.read_metadata()

    def add_pending_transfer(self, new_key: str, old_key: str) -> None:
        """Make ``new_key`` inherit ``old_key``'s label on the next regeneration."""
        self._pending_transfers[new_key] = old_key

    @property
    def pending_transfers(self) -> dict[str, str]:
        return dict(self._pending_transfers)

    # =========================================================================
    # Reconciliation
    # =========================================================================

    def handle_file_rename(self) -> bool:
        """
        Reconcile after the set of version files changed.

        Returns:
            False if suppressed or nothing changed, True after regenerating
        """
        if self.suppression.active:
            logger.debug("[%s] File-set reconciliation suppressed", self.name)
            return False

        current = {file.filename for file in self.version_files()}
        added = sorted(current - self._last_files)
        removed = sorted(self._last_files - current)
        if not added and not removed:
            return False

        logger.info(
            "[%s] Version files changed (removed: %s; added: %s)",
            self.name,
            ", ".join(removed) or "none",
            ", ".join(added) or "none",
        )

        if len(added) == 1 and len(removed) == 1:
            old_key = match_version_file(self.name, removed[0], self.extensions)
            new_key = match_version_file(self.name, added[0], self.extensions)
            if old_key and new_key and old_key != new_key:
                self.add_pending_transfer(new_key, old_key)
                logger.info("[%s] Inferred rename %s -> %s", self.name, old_key, new_key)
        elif added and removed:
            logger.warning(
                "[%s] %d files removed and %d added in one batch; not inferring a rename",
                self.name,
                len(removed),
                len(added),
            )

        self.regenerate()
        self.refresh_previous_metadata()
        return True

    def handle_versions_key_change(self) -> bool:
        """
        Reconcile after the manifest's keys were edited by hand.

        A clean one-for-one key swap renames the old version file to the new
        key and arms the suppression window. Anything else only updates the
        tracked key set.

        Returns:
            True if the key set changed
        """
        text = self.read_manifest()
        if text is None:
            return False
        try:
            current = parse_document(text).keys()
        except ManifestSyntaxError as e:
            logger.warning("[%s] Ignoring unparseable manifest: %s", self.name, e)
            return False

        added = sorted(current - self._last_keys)
        removed = sorted(self._last_keys - current)
        if not added and not removed:
            # Label or description edits only
            self.refresh_previous_metadata()
            return False

        logger.info(
            "[%s] Manifest keys changed (removed: %s; added: %s)",
            self.name,
            ", ".join(removed) or "none",
            ", ".join(added) or "none",
        )

        if len(added) == 1 and len(removed) == 1 and is_valid_key(added[0]):
            old_key, new_key = removed[0], added[0]
            old_path = self.find_version_file(old_key)
            if old_path is not None and self.find_version_file(new_key) is None:
                new_path = self.directory / version_file_name(self.name, new_key, old_path.suffix)
                rename_file(old_path, new_path)
                self.suppression.arm()
                self._last_files.discard(old_path.name)
                self._last_files.add(new_path.name)
                logger.info("[%s] Renamed %s -> %s", self.name, old_path.name, new_path.name)

        self._last_keys = set(current)
        self.refresh_previous_metadata()
        return True

    # =========================================================================
    # Snapshot
    # =========================================================================

    def info(self) -> UnitInfo:
        return UnitInfo(
            name=self.name,
            path=str(self.manifest_path),
            versions=self.version_keys(),
        )

    def _priority(self, extension: str) -> int:
        try:
            return self.extensions.index(extension)
        except ValueError:
            return len(self.extensions)
