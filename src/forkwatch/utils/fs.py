"""
Filesystem helpers shared by the unit manager, version service and promoter.

Every helper converts OSError into FileIOError so callers deal with a single
typed failure. Writes render the full content in memory first and replace
the target in one step, so readers never observe a half-written file.
"""

import os
import shutil
import stat
import tempfile
from pathlib import Path

from forkwatch.core.errors import FileIOError

# Directories never scanned for units and never watched
SKIP_DIRS = frozenset(
    {
        "node_modules",
        "__pycache__",
        "dist",
        "build",
        "coverage",
        "vendor",
        ".git",
        ".next",
        ".nuxt",
        ".venv",
        "venv",
    }
)


# Read once; os.umask can only be queried by setting it
_UMASK = os.umask(0)
os.umask(_UMASK)


def is_ignored_dir(name: str, extra: frozenset[str] | set[str] = frozenset()) -> bool:
    """Hidden and dependency directories are skipped during discovery."""
    return name.startswith(".") or name in SKIP_DIRS or name in extra


def is_ignored_path(
    path: Path, root: Path, extra: frozenset[str] | set[str] = frozenset()
) -> bool:
    """
    Check whether any component of ``path`` below ``root`` is ignored.

    Hidden files are ignored too, which also hides the temporary files
    produced by write_text_atomic.
    """
    try:
        relative = path.relative_to(root)
    except ValueError:
        return True
    parts = relative.parts
    if not parts:
        return False
    if parts[-1].startswith("."):
        return True
    return any(is_ignored_dir(part, extra) for part in parts[:-1])


def read_text(path: Path) -> str:
    """Read a UTF-8 file with line endings left as they are on disk."""
    try:
        with path.open(encoding="utf-8", newline="") as f:
            return f.read()
    except OSError as e:
        raise FileIOError(f"Failed to read {path.name}: {e.strerror or e}", path) from e


def file_mode(path: Path) -> int:
    """Permission bits of an existing file."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except OSError as e:
        raise FileIOError(f"Failed to stat {path.name}: {e.strerror or e}", path) from e


def write_text_atomic(path: Path, content: str, mode: int | None = None) -> None:
    """
    Write ``content`` to ``path`` in a single replace.

    The content goes to a hidden temporary file in the same directory which
    then replaces the target, so a failure leaves the previous file intact.

    The result gets ``mode`` when given, otherwise the permissions of the
    file it replaces, or the umask default for a new file.
    """
    if mode is None:
        try:
            mode = stat.S_IMODE(path.stat().st_mode)
        except FileNotFoundError:
            mode = 0o666 & ~_UMASK
        except OSError as e:
            raise FileIOError(f"Failed to stat {path.name}: {e.strerror or e}", path) from e
    fd, tmp_name = None, None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            fd = None
            f.write(content)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as e:
        raise FileIOError(f"Failed to write {path.name}: {e.strerror or e}", path) from e
    finally:
        if fd is not None:
            os.close(fd)
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)


def rename_file(source: Path, target: Path) -> None:
    try:
        source.rename(target)
    except OSError as e:
        raise FileIOError(
            f"Failed to rename {source.name} to {target.name}: {e.strerror or e}", source
        ) from e


def remove_file(path: Path, missing_ok: bool = False) -> None:
    try:
        path.unlink(missing_ok=missing_ok)
    except OSError as e:
        raise FileIOError(f"Failed to delete {path.name}: {e.strerror or e}", path) from e


def copy_file(source: Path, target: Path) -> None:
    """Byte-for-byte copy of ``source`` to ``target``."""
    try:
        shutil.copyfile(source, target)
    except OSError as e:
        raise FileIOError(
            f"Failed to copy {source.name} to {target.name}: {e.strerror or e}", target
        ) from e
