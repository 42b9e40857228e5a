"""
Version data models.

VersionNumber is the (major, minor) pair parsed from a version key. It
drives ordering only; keys are not semantic versions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, Field


@dataclass(frozen=True, order=True)
class VersionNumber:
    """Numeric parts of a version key.

    Attributes:
        major: Number before the underscore
        minor: Number after the underscore (0 when absent)
    """

    major: int
    minor: int = 0

    def to_key(self) -> str:
        """Convert back to a canonical key (``v3`` or ``v3_1``)."""
        if self.minor == 0:
            return f"v{self.major}"
        return f"v{self.major}_{self.minor}"


@dataclass(frozen=True)
class VersionFile:
    """A version file discovered on disk for a unit."""

    key: str
    path: Path
    number: VersionNumber = field(compare=False)

    @property
    def extension(self) -> str:
        return self.path.suffix

    @property
    def filename(self) -> str:
        return self.path.name


class VersionMetadata(BaseModel):
    """Hand-editable metadata carried in the manifest for one version."""

    label: str | None = None
    description: str | None = None


class Version(BaseModel):
    """A version of a unit as projected into the manifest."""

    key: str
    path: Path
    extension: str
    render: str = Field(description="Identifier the manifest uses for this version")
    label: str = ""
    description: str | None = None
