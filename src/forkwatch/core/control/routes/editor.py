"""
Open-in-editor route.

- POST /open-in-editor - open a version's file in an external tool
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from forkwatch.core.config.models import ForkwatchConfig
from forkwatch.core.control.deps import get_config, get_launcher, get_orchestrator
from forkwatch.core.control.editor import EditorLauncher
from forkwatch.core.errors import ValidationError
from forkwatch.core.sync.orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


class OpenInEditorRequest(BaseModel):
    """Body of POST /open-in-editor. Missing fields are reported as 400s."""

    model_config = ConfigDict(extra="ignore")

    unit: str | None = Field(default=None, validation_alias=AliasChoices("unit", "component"))
    version: str | None = None
    tool: str | None = Field(default=None, validation_alias=AliasChoices("tool", "editor"))


class OpenInEditorResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    file_path: str = Field(serialization_alias="filePath")


@router.post("/open-in-editor", response_model=OpenInEditorResponse, response_model_by_alias=True)
def open_in_editor(
    body: OpenInEditorRequest,
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
    launcher: EditorLauncher = Depends(get_launcher),
    config: ForkwatchConfig = Depends(get_config),
) -> OpenInEditorResponse:
    """
    Open a version file with the requested tool.

    Falls back to the configured editor, then the OS default opener.

    Returns:
        ``{"success": true, "filePath": "..."}``

    Raises:
        ValidationError: 400 if unit or version is missing or malformed
        NotFoundError: 404 if the unit or version file does not exist
        EditorLaunchError: 500 if no candidate could be started
    """
    if not body.unit:
        raise ValidationError("Missing unit parameter")
    manager = orchestrator.get_manager(body.unit)
    if not body.version:
        raise ValidationError("Missing version parameter")
    path = manager.require_version_file(body.version)

    launcher.open(path, requested=body.tool, configured=config.editor.tool)
    return OpenInEditorResponse(file_path=str(path))
