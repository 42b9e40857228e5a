"""
Version keys, ordering and naming conventions.
"""

from .models import Version, VersionFile, VersionMetadata, VersionNumber
from .naming import (
    DEFAULT_EXTENSIONS,
    base_identifier,
    display_version,
    file_version_to_key,
    is_manifest_file,
    is_valid_key,
    key_to_file_version,
    manifest_file_name,
    match_version_file,
    parse_key,
    sort_key,
    to_pascal_case_identifier,
    unit_name_from_manifest,
    version_file_name,
    version_identifier,
)

__all__ = [
    # Models
    "Version",
    "VersionFile",
    "VersionMetadata",
    "VersionNumber",
    # Naming
    "DEFAULT_EXTENSIONS",
    "base_identifier",
    "display_version",
    "file_version_to_key",
    "is_manifest_file",
    "is_valid_key",
    "key_to_file_version",
    "manifest_file_name",
    "match_version_file",
    "parse_key",
    "sort_key",
    "to_pascal_case_identifier",
    "unit_name_from_manifest",
    "version_file_name",
    "version_identifier",
]
