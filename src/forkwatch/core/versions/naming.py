"""
Naming rules for versioned units.

Covers the version key grammar, key <-> file-version conversion, the
identifiers a manifest uses to reference each version, and the file naming
conventions for version files and manifests:

    Widget.v1.tsx          version file, key "v1"
    Widget.v1_2.tsx        version file, key "v1_2"
    Widget.manifest.ts     manifest for unit "Widget"
"""

import re
from pathlib import Path

from forkwatch.core.versions.models import VersionNumber

VERSION_KEY_RE = re.compile(r"^v(\d+)(?:_(\d+))?$")

# Probe order when more than one file exists for the same key
DEFAULT_EXTENSIONS: tuple[str, ...] = (".tsx", ".ts", ".jsx", ".js")

MANIFEST_SUFFIX = ".manifest.ts"
SWITCHER_INFIXES = (".UISwitcher", ".switcher")


def is_valid_key(key: object) -> bool:
    """Return True if ``key`` matches ``v<major>[_<minor>]``."""
    return isinstance(key, str) and VERSION_KEY_RE.match(key) is not None


def parse_key(key: str) -> VersionNumber:
    """
    Parse a version key into its numeric parts.

    Args:
        key: Version key such as "v2" or "v1_2"

    Returns:
        VersionNumber(major, minor)

    Raises:
        ValueError: If the key does not match the grammar
    """
    match = VERSION_KEY_RE.match(key)
    if match is None:
        raise ValueError(f"Invalid version key: {key!r}")
    return VersionNumber(int(match.group(1)), int(match.group(2) or 0))


def sort_key(key: str) -> tuple[int, int, str]:
    """Total ordering for keys: (major, minor), ties broken by key text."""
    number = parse_key(key)
    return (number.major, number.minor, key)


def key_to_file_version(key: str) -> str:
    """``v1_2`` -> ``1_2``."""
    return key[1:] if key.startswith("v") else key


def file_version_to_key(file_version: str) -> str:
    """``1_2`` -> ``v1_2``."""
    return f"v{file_version}"


def display_version(key: str) -> str:
    """Human display form of a key: ``v1_2`` -> ``1.2``."""
    return key_to_file_version(key).replace("_", ".").upper()


def to_pascal_case_identifier(name: str) -> str:
    """
    Turn an arbitrary unit name into a valid PascalCase identifier.

    Example:
        >>> to_pascal_case_identifier("date-picker")
        'DatePicker'
        >>> to_pascal_case_identifier("3d-view")
        'Component3dView'
    """
    chunks = re.findall(r"[a-zA-Z0-9]+", name or "")
    identifier = "".join(chunk[0].upper() + chunk[1:] for chunk in chunks)
    if not identifier:
        return "Component"
    if not re.match(r"[A-Za-z_$]", identifier):
        return f"Component{identifier}"
    return identifier


def version_suffix(file_version: str) -> str:
    """``1_2`` -> ``V1_2``."""
    return f"V{file_version[:1].upper()}{file_version[1:]}"


def base_identifier(unit_name: str) -> str:
    """Identifier of the unit's plain, non-versioned implementation."""
    return to_pascal_case_identifier(unit_name)


def version_identifier(unit_name: str, key: str) -> str:
    """
    Identifier a manifest uses to reference one version.

    Example:
        >>> version_identifier("Widget", "v1_2")
        'WidgetV1_2'
    """
    return f"{base_identifier(unit_name)}{version_suffix(key_to_file_version(key))}"


def version_file_name(unit_name: str, key: str, extension: str) -> str:
    """``("Widget", "v2", ".tsx")`` -> ``Widget.v2.tsx``."""
    return f"{unit_name}.v{key_to_file_version(key)}{extension}"


def manifest_file_name(unit_name: str) -> str:
    return f"{unit_name}{MANIFEST_SUFFIX}"


def is_manifest_file(path: Path | str) -> bool:
    name = Path(path).name
    return name.endswith(MANIFEST_SUFFIX) and len(name) > len(MANIFEST_SUFFIX)


def unit_name_from_manifest(path: Path | str) -> str:
    """
    Derive the unit name from a manifest path.

    A stray source extension left before the suffix is dropped, so both
    ``Widget.manifest.ts`` and ``Widget.tsx.manifest.ts`` yield "Widget".
    """
    name = Path(path).name
    base = name[: -len(MANIFEST_SUFFIX)] if name.endswith(MANIFEST_SUFFIX) else name
    stem, ext = _split_extension(base)
    return stem if ext else base


def version_file_pattern(
    unit_name: str, extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
) -> re.Pattern[str]:
    """Regex matching ``<unit>.v<major>[_<minor>].<ext>`` for one unit."""
    ext_group = "|".join(re.escape(ext.lstrip(".")) for ext in extensions)
    return re.compile(rf"^{re.escape(unit_name)}\.v(\d+(?:_\d+)?)\.({ext_group})$")


def match_version_file(
    unit_name: str, filename: str, extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
) -> str | None:
    """Return the version key if ``filename`` is a version file of the unit."""
    match = version_file_pattern(unit_name, extensions).match(filename)
    if match is None:
        return None
    return file_version_to_key(match.group(1))


def switcher_file_names(
    unit_name: str, extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
) -> list[str]:
    """Scaffolding files a unit may own besides versions and manifest."""
    return [f"{unit_name}{infix}{ext}" for infix in SWITCHER_INFIXES for ext in extensions]


def _split_extension(name: str) -> tuple[str, str]:
    for ext in DEFAULT_EXTENSIONS:
        if name.endswith(ext):
            return name[: -len(ext)], ext
    return name, ""
