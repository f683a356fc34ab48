from __future__ import annotations

from efes.models.schemas import (
    BuildingInput,
    EfesReport,
    FilterResult,
    ParcelContext,
    TrackAResult,
    TrackBResult,
    TrackCResult,
)

__all__ = [
    "BuildingInput",
    "EfesReport",
    "FilterResult",
    "ParcelContext",
    "TrackAResult",
    "TrackBResult",
    "TrackCResult",
]
