"""
Version promotion.

Promotion ends versioning for a unit: the chosen version's content becomes
the unit's plain ``<Unit><ext>`` file and every version file, the manifest
and any switcher scaffolding are removed. It cannot be undone.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from forkwatch.core.units.manager import UnitManager
from forkwatch.core.versions import base_identifier, version_identifier
from forkwatch.core.versions.naming import switcher_file_names
from forkwatch.utils.fs import file_mode, read_text, remove_file, write_text_atomic

logger = logging.getLogger(__name__)


@dataclass
class PromotionResult:
    """Outcome of a promotion."""

    unit: str
    version: str
    target: Path
    deleted: list[Path] = field(default_factory=list)


def rewrite_identifiers(content: str, versioned: str, base: str) -> str:
    """Replace every whole-word occurrence of ``versioned`` with ``base``."""
    return re.sub(rf"\b{re.escape(versioned)}\b", base, content)


class VersionPromoter:
    """
    Collapse a unit back to a single non-versioned file.

    All writes happen before any delete, so a failure part-way leaves the
    version files in place.

    Example:
        >>> VersionPromoter(manager, "v2").promote()
    """

    def __init__(self, manager: UnitManager, version: str) -> None:
        self.manager = manager
        self.version = manager.validate_key(version)

    @property
    def versioned_identifier(self) -> str:
        return version_identifier(self.manager.name, self.version)

    @property
    def base_identifier(self) -> str:
        return base_identifier(self.manager.name)

    def owned_files(self) -> list[Path]:
        """Every file that disappears with the unit: versions, manifest, scaffolding."""
        manager = self.manager
        paths = [file.path for file in manager.version_files()]
        paths.append(manager.manifest_path)
        paths.extend(
            manager.directory / name
            for name in switcher_file_names(manager.name, manager.extensions)
        )
        return [path for path in paths if path.exists()]

    def promote(self) -> PromotionResult:
        """
        Run the promotion.

        Raises:
            NotFoundError: If the chosen version has no file
            FileIOError: If a read, write or delete fails
        """
        source = self.manager.require_version_file(self.version)
        target = self.manager.directory / f"{self.manager.name}{source.suffix}"

        content = rewrite_identifiers(
            read_text(source), self.versioned_identifier, self.base_identifier
        )
        to_delete = self.owned_files()

        write_text_atomic(target, content, mode=file_mode(source))
        logger.info("[%s] Wrote %s from %s", self.manager.name, target.name, self.version)

        for path in to_delete:
            if path == target:
                continue
            remove_file(path, missing_ok=True)
            logger.info("[%s] Deleted %s", self.manager.name, path.name)

        return PromotionResult(
            unit=self.manager.name,
            version=self.version,
            target=target,
            deleted=[path for path in to_delete if path != target],
        )
