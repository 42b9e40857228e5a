"""Utility modules for forkwatch."""

from .fs import (
    SKIP_DIRS,
    copy_file,
    file_mode,
    is_ignored_dir,
    is_ignored_path,
    read_text,
    remove_file,
    rename_file,
    write_text_atomic,
)

__all__ = [
    "copy_file",
    "file_mode",
    "is_ignored_dir",
    "is_ignored_path",
    "read_text",
    "remove_file",
    "rename_file",
    "write_text_atomic",
    "SKIP_DIRS",
]
