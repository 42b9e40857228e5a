"""
Control plane: HTTP queries, the /ws push channel and editor launch.
"""

from .app import create_app
from .commands import CommandDispatcher
from .editor import EditorLaunchError, EditorLauncher, resolve_editor_commands
from .hub import SubscriberHub

__all__ = [
    "CommandDispatcher",
    "EditorLaunchError",
    "EditorLauncher",
    "SubscriberHub",
    "create_app",
    "resolve_editor_commands",
]
