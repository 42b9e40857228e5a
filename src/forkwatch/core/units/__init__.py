"""
Versioned units: per-unit synchronization, lookup and promotion.
"""

from .lookup import find_manifest, iter_manifests
from .manager import UnitManager
from .models import UnitInfo, UnitsSnapshot
from .promote import PromotionResult, VersionPromoter

__all__ = [
    "PromotionResult",
    "UnitInfo",
    "UnitManager",
    "UnitsSnapshot",
    "VersionPromoter",
    "find_manifest",
    "iter_manifests",
]
