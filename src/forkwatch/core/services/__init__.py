"""
Service layer shared by the control plane and the CLI.
"""

from .versions import CommandResult, VersionService

__all__ = ["CommandResult", "VersionService"]
