"""
Unit query routes.

- GET /units - every registered unit with its version keys
"""

from fastapi import APIRouter, Depends

from forkwatch.core.control.deps import get_orchestrator
from forkwatch.core.sync.orchestrator import SyncOrchestrator
from forkwatch.core.units.models import UnitsSnapshot

router = APIRouter()


@router.get("/units", response_model=UnitsSnapshot)
def list_units(orchestrator: SyncOrchestrator = Depends(get_orchestrator)) -> UnitsSnapshot:
    """
    List all units with their version keys.

    Runs in the threadpool because building the snapshot lists each unit's
    directory.

    Example response:
        {
          "units": [
            {
              "name": "Widget",
              "path": "/project/src/Widget.manifest.ts",
              "versions": ["v1", "v1_2", "v2"]
            }
          ]
        }
    """
    return orchestrator.registry.snapshot()
