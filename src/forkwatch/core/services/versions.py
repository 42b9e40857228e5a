"""
Version service: the mutation commands behind the control plane and the CLI.

Every operation validates its arguments before touching the filesystem and
raises a typed error from forkwatch.core.errors on failure. Operations are
synchronous; callers that share a unit with the watcher run them under the
unit's lock.

Usage:
    >>> from forkwatch.core.services.versions import VersionService
    >>> service = VersionService()
    >>> result = service.new_version(manager)
    >>> result.version
    'v3'
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from forkwatch.core.errors import ConflictError, ValidationError
from forkwatch.core.manifest import replace_label
from forkwatch.core.units.manager import UnitManager
from forkwatch.core.units.promote import VersionPromoter, rewrite_identifiers
from forkwatch.core.units.templates import new_version_template
from forkwatch.core.versions import display_version, version_file_name, version_identifier
from forkwatch.utils.fs import copy_file, file_mode, read_text, remove_file, write_text_atomic

logger = logging.getLogger(__name__)


# ============================================================================
# Results
# ============================================================================


class CommandResult(BaseModel):
    """Acknowledgement of a completed command."""

    unit: str
    message: str
    version: str | None = Field(default=None, description="Version the command produced or acted on")
    previous_version: str | None = Field(
        default=None, description="Source version for duplicate and rename"
    )
    display_version: str | None = None
    label: str | None = None
    file_path: str | None = None
    unit_removed: bool = Field(
        default=False, description="True when the unit stopped existing (promotion)"
    )


# ============================================================================
# VersionService
# ============================================================================


class VersionService:
    """
    Structured mutations on one unit's versions.

    The service holds no state of its own; everything it needs comes from
    the UnitManager passed to each call.
    """

    def new_version(self, manager: UnitManager, version: str | None = None) -> CommandResult:
        """
        Create a version from a minimal template.

        Args:
            manager: Unit to add the version to
            version: Key to create; allocated as the next major when omitted

        Raises:
            ValidationError: If ``version`` is malformed
            ConflictError: If the version already exists
        """
        key = self._target_key(manager, version)
        extension = manager.most_common_extension()
        path = manager.directory / version_file_name(manager.name, key, extension)

        content = new_version_template(version_identifier(manager.name, key), key, extension)
        write_text_atomic(path, content)
        logger.info("[%s] Created %s", manager.name, path.name)

        manager.regenerate()
        return CommandResult(
            unit=manager.name,
            message=f"Successfully created new version {key}",
            version=key,
            display_version=display_version(key),
            file_path=str(path),
        )

    def duplicate_version(
        self, manager: UnitManager, version: str, new_version: str | None = None
    ) -> CommandResult:
        """
        Copy a version's file verbatim to a new key.

        Raises:
            ValidationError: If a key is malformed
            NotFoundError: If the source version is missing
            ConflictError: If the target version already exists
        """
        source = manager.require_version_file(version)
        key = self._target_key(manager, new_version)
        target = manager.directory / version_file_name(manager.name, key, source.suffix)

        copy_file(source, target)
        logger.info("[%s] Duplicated %s -> %s", manager.name, source.name, target.name)

        manager.regenerate()
        return CommandResult(
            unit=manager.name,
            message=f"Successfully duplicated {version} to {key}",
            version=key,
            previous_version=version,
            file_path=str(target),
        )

    def delete_version(self, manager: UnitManager, version: str) -> CommandResult:
        """
        Delete a version's file.

        Raises:
            ValidationError: If the key is malformed
            NotFoundError: If the version is missing
            ConflictError: If it is the unit's only version
        """
        path = manager.require_version_file(version)
        if len(manager.version_files()) <= 1:
            raise ConflictError(f"Cannot delete {version}: it is the only version of {manager.name}")

        remove_file(path)
        logger.info("[%s] Deleted %s", manager.name, path.name)

        manager.regenerate()
        return CommandResult(
            unit=manager.name,
            message=f"Successfully deleted version {version}",
            version=version,
        )

    def rename_version(self, manager: UnitManager, version: str, new_version: str) -> CommandResult:
        """
        Move a version to a new key.

        References to the old version identifier inside the file are
        rewritten to the new one. The label follows the version.

        Raises:
            ValidationError: If a key is malformed, missing, or both keys are equal
            NotFoundError: If the source version is missing
            ConflictError: If the target version already exists
        """
        if not new_version:
            raise ValidationError("New version is required")
        source = manager.require_version_file(version)
        new_key = manager.validate_key(new_version)
        if new_key == version:
            raise ValidationError(f"Version {version} is already named {new_key}")
        if manager.find_version_file(new_key) is not None:
            raise ConflictError(f"Version already exists: {new_key}")

        target = manager.directory / version_file_name(manager.name, new_key, source.suffix)
        content = rewrite_identifiers(
            read_text(source),
            version_identifier(manager.name, version),
            version_identifier(manager.name, new_key),
        )

        manager.refresh_previous_metadata()
        write_text_atomic(target, content, mode=file_mode(source))
        remove_file(source)
        logger.info("[%s] Renamed %s -> %s", manager.name, source.name, target.name)

        manager.add_pending_transfer(new_key, version)
        manager.regenerate()
        manager.refresh_previous_metadata()
        return CommandResult(
            unit=manager.name,
            message=f"Successfully renamed {version} to {new_key}",
            version=new_key,
            previous_version=version,
            file_path=str(target),
        )

    def rename_label(self, manager: UnitManager, version: str, new_label: str | None) -> CommandResult:
        """
        Change one version's label in the manifest.

        Only the label value in the manifest changes; version files are not
        touched and the manifest is not regenerated.

        Raises:
            ValidationError: If the key is malformed or the label is missing
            NotFoundError: If the manifest has no entry for the version
            ManifestSyntaxError: If the manifest cannot be parsed
        """
        manager.validate_key(version)
        if new_label is None:
            raise ValidationError("New label is required")

        text = manager.read_manifest()
        if text is None:
            raise ValidationError(f"Manifest for {manager.name} does not exist")

        updated = replace_label(text, version, new_label)
        if updated != text:
            write_text_atomic(manager.manifest_path, updated)
        manager.refresh_previous_metadata()
        logger.info("[%s] Relabelled %s as %r", manager.name, version, new_label)

        return CommandResult(
            unit=manager.name,
            message=f"Successfully renamed label of {version}",
            version=version,
            label=new_label,
        )

    def promote_version(self, manager: UnitManager, version: str) -> CommandResult:
        """
        Make one version the unit's only implementation and stop versioning it.

        Raises:
            ValidationError: If the key is malformed
            NotFoundError: If the version is missing
        """
        result = VersionPromoter(manager, version).promote()
        return CommandResult(
            unit=manager.name,
            message=f"Successfully promoted {version} to {result.target.name}",
            version=version,
            file_path=str(result.target),
            unit_removed=True,
        )

    def _target_key(self, manager: UnitManager, version: str | None) -> str:
        if version:
            key = manager.validate_key(version)
        else:
            key = manager.get_next_version_number().to_key()
        if manager.find_version_file(key) is not None:
            raise ConflictError(f"Version already exists: {key}")
        return key
