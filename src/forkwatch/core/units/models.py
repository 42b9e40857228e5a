"""
Unit snapshot models.

These are the shapes the orchestrator broadcasts and the control plane
serves from ``GET /units``.
"""

from pydantic import BaseModel, Field


class UnitInfo(BaseModel):
    """Public view of one versioned unit."""

    name: str = Field(description="Unit name, e.g. 'Widget'")
    path: str = Field(description="Absolute path of the unit's manifest file")
    versions: list[str] = Field(
        default_factory=list,
        description="Version keys in ascending (major, minor) order",
    )


class UnitsSnapshot(BaseModel):
    """State of every registered unit at one point in time."""

    units: list[UnitInfo] = Field(default_factory=list)

    def names(self) -> list[str]:
        return [unit.name for unit in self.units]

    def get(self, name: str) -> UnitInfo | None:
        for unit in self.units:
            if unit.name == name:
                return unit
        return None
