"""
Request-scoped access to the objects created by create_app.
"""

from fastapi import Request

from forkwatch.core.config.models import ForkwatchConfig
from forkwatch.core.control.editor import EditorLauncher
from forkwatch.core.sync.orchestrator import SyncOrchestrator


def get_orchestrator(request: Request) -> SyncOrchestrator:
    return request.app.state.orchestrator


def get_config(request: Request) -> ForkwatchConfig:
    return request.app.state.config


def get_launcher(request: Request) -> EditorLauncher:
    return request.app.state.launcher
