"""
Open a version file in an external editor.

The control plane only resolves which command to try; EditorLauncher is the
boundary where a process is actually started. Candidates are tried in order:

1. The tool named in the request ("vscode" -> ``code``, "cursor" ->
   ``cursor``, anything else used as given)
2. The configured tool (config ``editor.tool``, which defaults to $EDITOR)
3. The operating system's default opener
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import sys
from pathlib import Path

from forkwatch.core.errors import ForkwatchError

logger = logging.getLogger(__name__)

TOOL_ALIASES = {
    "vscode": "code",
    "code": "code",
    "cursor": "cursor",
}


class EditorLaunchError(ForkwatchError):
    """No candidate editor could be started."""

    code = "EDITOR_ERROR"


def default_opener(platform: str | None = None) -> list[str]:
    """Command that opens a file with the OS default application."""
    platform = platform or sys.platform
    if platform == "darwin":
        return ["open"]
    if platform.startswith("win"):
        return ["cmd", "/c", "start", ""]
    return ["xdg-open"]


def resolve_editor_commands(
    requested: str | None,
    configured: str | None,
    platform: str | None = None,
) -> list[list[str]]:
    """
    Candidate commands in fallback order, without duplicates.

    Example:
        >>> resolve_editor_commands("vscode", "vim", platform="linux")
        [['code'], ['vim'], ['xdg-open']]
    """
    candidates: list[list[str]] = []
    if requested:
        alias = TOOL_ALIASES.get(requested.strip().lower())
        candidates.append([alias] if alias else shlex.split(requested))
    if configured:
        candidates.append(shlex.split(configured))
    candidates.append(default_opener(platform))

    unique: list[list[str]] = []
    for command in candidates:
        if command and command not in unique:
            unique.append(command)
    return unique


class EditorLauncher:
    """Starts editor processes without waiting for them."""

    def spawn(self, command: list[str], path: Path) -> None:
        """
        Start ``command path`` detached from the server.

        Raises:
            OSError: If the executable cannot be started
        """
        subprocess.Popen(
            [*command, str(path)],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )

    def open(self, path: Path, requested: str | None = None, configured: str | None = None) -> list[str]:
        """
        Open ``path`` with the first candidate that starts.

        Returns:
            The command that was used

        Raises:
            EditorLaunchError: If every candidate failed
        """
        for command in resolve_editor_commands(requested, configured):
            try:
                self.spawn(command, path)
            except OSError as e:
                logger.warning("Could not start %s: %s", command[0], e)
                continue
            logger.info("Opened %s with %s", path, command[0])
            return command
        raise EditorLaunchError("Failed to open file in editor")
