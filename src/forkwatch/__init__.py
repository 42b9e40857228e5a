"""
forkwatch - versioned UI units kept in sync with their manifests

Watches a source tree for ``<Unit>.v<N>.<ext>`` version files, keeps each
unit's generated ``<Unit>.manifest.ts`` up to date, and serves a control
plane for creating, renaming, deleting and promoting versions.
"""

__version__ = "0.1.0"

# Re-export core models for convenience
from forkwatch.core.config.models import ForkwatchConfig
from forkwatch.core.units.manager import UnitManager
from forkwatch.core.units.models import UnitInfo, UnitsSnapshot

__all__ = ["ForkwatchConfig", "UnitInfo", "UnitManager", "UnitsSnapshot", "__version__"]
