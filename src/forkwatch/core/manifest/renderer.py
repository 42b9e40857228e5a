"""
Manifest renderer.

Projects the version files currently on disk, plus metadata preserved from
the previous manifest, into the text of ``<Unit>.manifest.ts``. Output is a
pure function of its inputs so regenerating without a file change yields
byte-identical content.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, MutableMapping, Sequence

from forkwatch.core.errors import NotFoundError
from forkwatch.core.manifest.parser import EXPORT_NAME, parse_document
from forkwatch.core.versions.models import Version, VersionFile, VersionMetadata
from forkwatch.core.versions.naming import sort_key, version_identifier

logger = logging.getLogger(__name__)

HEADER = """\
/**
 * THIS FILE IS GENERATED by forkwatch.
 * Manual edits to labels/descriptions are preserved, but structure changes may be overwritten.
 * To stop versioning this unit, run: forkwatch promote {unit} <version-id>
 */
"""


def js_string(value: str) -> str:
    """Encode a Python string as a double-quoted JS string literal."""
    return json.dumps(value, ensure_ascii=False)


def project_versions(
    unit_name: str,
    files: Sequence[VersionFile],
    previous: Mapping[str, VersionMetadata],
    pending_transfers: MutableMapping[str, str] | None = None,
    transfer_metadata: Mapping[str, VersionMetadata] | None = None,
) -> list[Version]:
    """
    Combine on-disk version files with preserved metadata.

    A pending transfer ``new_key -> old_key`` makes the new key inherit the
    old key's label and description. Each transfer is consumed (removed from
    ``pending_transfers``) when applied.

    Args:
        unit_name: Name of the unit
        files: Version files discovered on disk
        previous: Metadata parsed from the current manifest, by key
        pending_transfers: One-shot rename transfers, by target key
        transfer_metadata: Metadata cached before the rename; used only when
            the transfer source is no longer in ``previous``

    Returns:
        Versions in ascending (major, minor) order
    """
    pending = pending_transfers if pending_transfers is not None else {}
    cached = transfer_metadata or {}
    versions: list[Version] = []

    for file in sorted(files, key=lambda f: sort_key(f.key)):
        metadata = previous.get(file.key, VersionMetadata())

        if file.key in pending:
            source_key = pending.pop(file.key)
            if source_key in previous:
                source = previous[source_key]
            else:
                source = cached.get(source_key, VersionMetadata())
            metadata = VersionMetadata(label=source.label, description=source.description)
            logger.info("[%s] Transferred label from %s to %s", unit_name, source_key, file.key)

        versions.append(
            Version(
                key=file.key,
                path=file.path,
                extension=file.extension,
                render=version_identifier(unit_name, file.key),
                label=metadata.label or "",
                description=metadata.description or None,
            )
        )

    return versions


def render_manifest(unit_name: str, versions: Sequence[Version], *, lazy: bool = False) -> str:
    """
    Render manifest text for an ordered list of versions.

    Args:
        unit_name: Name of the unit
        versions: Versions in the order they should appear
        lazy: Emit ``React.lazy`` loaders instead of static imports

    Returns:
        Complete file content
    """
    imports = _render_imports(versions, lazy=lazy)
    blocks = ",\n".join(_render_block(version) for version in versions)

    parts = [HEADER.format(unit=unit_name)]
    if imports:
        parts.append(imports + "\n")
    parts.append(f"export const {EXPORT_NAME} = {{\n")
    if blocks:
        parts.append(blocks + ",\n")
    parts.append("}\n")
    return "".join(parts)


def render(
    unit_name: str,
    files: Sequence[VersionFile],
    previous: Mapping[str, VersionMetadata],
    pending_transfers: MutableMapping[str, str] | None = None,
    *,
    transfer_metadata: Mapping[str, VersionMetadata] | None = None,
    lazy: bool = False,
) -> str:
    """Project versions and render them in one step."""
    versions = project_versions(unit_name, files, previous, pending_transfers, transfer_metadata)
    return render_manifest(unit_name, versions, lazy=lazy)


def replace_label(text: str, key: str, label: str) -> str:
    """
    Replace the label of one version inside existing manifest text.

    Only the label value changes; everything else in the file, including
    hand formatting, is left as-is. A missing label field is inserted at the
    top of the block.

    Raises:
        ManifestSyntaxError: If the manifest cannot be parsed
        NotFoundError: If ``key`` has no block in the manifest
    """
    document = parse_document(text)
    entry = document.entries.get(key)
    if entry is None:
        raise NotFoundError(f"Version {key} not found in manifest")

    literal = js_string(label)
    existing = entry.fields.get("label")
    if existing is not None:
        return text[: existing.start] + literal + text[existing.end :]

    insert_at = entry.start + 1
    return text[:insert_at] + f"\n    label: {literal}," + text[insert_at:]


def _import_path(version: Version) -> str:
    return f"./{version.path.name[: -len(version.extension)]}"


def _render_imports(versions: Sequence[Version], *, lazy: bool) -> str:
    if not versions:
        return ""
    if lazy:
        loaders = "\n".join(
            f"const {v.render} = lazy(() => import({js_string(_import_path(v))}));"
            for v in versions
        )
        return f"import {{ lazy }} from 'react';\n\n// Lazy load components\n{loaders}"
    return "\n".join(
        f"import {v.render} from {js_string(_import_path(v))}" for v in versions
    )


def _render_block(version: Version) -> str:
    lines = [
        f"  {js_string(version.key)}: {{",
        f"    render: {version.render},",
        f"    label: {js_string(version.label)},",
    ]
    if version.description:
        lines.append(f"    description: {js_string(version.description)},")
    lines.append("  }")
    return "\n".join(lines)
