"""
Synchronization timers and orchestration.

Only the timer primitives are re-exported here. Import the orchestrator,
registry and watcher from their modules:

    from forkwatch.core.sync.orchestrator import SyncOrchestrator
    from forkwatch.core.sync.registry import UnitRegistry
"""

from .timers import (
    CLIENT_FALLBACK_WINDOW,
    KEY_RENAME_SUPPRESSION_WINDOW,
    SETTLE_WINDOW,
    Debouncer,
    SuppressionWindow,
)

__all__ = [
    "CLIENT_FALLBACK_WINDOW",
    "KEY_RENAME_SUPPRESSION_WINDOW",
    "SETTLE_WINDOW",
    "Debouncer",
    "SuppressionWindow",
]
