"""
Main rights calculator: takes a ParcelContext + BuildingInput and produces an
EfesReport with up to three side-by-side entitlement tracks.

Flow:
  - exclusion filter pipeline (gates every track)
  - TAMA 38 (Track A)
  - Shaked alternative (Track B), built on Track A
  - HFP/2666 district plan (Track C), independent of A and B
  - comparison block across whichever tracks ran
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from efes.models.schemas import (
    BuildingInput, EfesReport, ParcelContext, TrackAResult, TrackBResult,
    TrackCResult, TrackComparisonSummary, TrackSummary,
)
from efes.rights_engine.filters import evaluate_filters
from efes.rights_engine.hfp2666 import calculate_hfp2666
from efes.rights_engine.shaked import calculate_shaked
from efes.rights_engine.tama38 import calculate_tama38

logger = logging.getLogger(__name__)

TRACK_LABELS = {
    "tama38": 'תמ"א 38',
    "shaked": "חלופת שקד",
    "hfp2666": "חפ/2666",
}


def summarize_track(
    track: str,
    result: Union[TrackAResult, TrackBResult, TrackCResult],
) -> TrackSummary:
    inclusive = result.inclusive_housing
    return TrackSummary(
        track=track,
        label=TRACK_LABELS[track],
        total_primary_area=result.total_primary_area,
        potential_units_low=result.potential_units_low,
        potential_units_high=result.potential_units_high,
        developer_primary=result.developer_primary,
        developer_units_high=result.developer_units_high,
        marketable_units=inclusive.marketable_units if inclusive else None,
    )


def compare_tracks(
    tama38: Optional[TrackAResult],
    shaked: Optional[TrackBResult],
    hfp2666: Optional[TrackCResult],
) -> TrackComparisonSummary:
    """One row per computed track; the largest entitlement is the best track.

    Tie-break: more potential units, then declaration order (A, B, C).
    Tracks without an entitlement figure (unresolved or strengthening-only
    HFP/2666) are listed but never ranked.
    """
    rows = [
        summarize_track(track, result)
        for track, result in (("tama38", tama38), ("shaked", shaked), ("hfp2666", hfp2666))
        if result is not None
    ]
    ranked = [row for row in rows if row.total_primary_area is not None]
    best = None
    if ranked:
        best = max(
            ranked,
            key=lambda row: (row.total_primary_area, row.potential_units_high or 0),
        ).track
    return TrackComparisonSummary(rows=rows, best_track=best)


class RightsCalculator:
    """Computes every applicable entitlement track for a parcel."""

    def calculate(
        self,
        parcel: ParcelContext,
        building: BuildingInput,
        manual_district_id: int | None = None,
        manual_sub_area_id: str | None = None,
        estimated_land_value: float | None = None,
    ) -> EfesReport:
        """Full calculation: filters, tracks and comparison.

        Tracks disabled by the filter pipeline are ``None`` in the report.
        ``estimated_land_value`` falls back to the building's own estimate.
        """
        filter_result = evaluate_filters(parcel, building)

        tama38 = None
        shaked = None
        if filter_result.allow_tama38:
            tama38 = calculate_tama38(building, parcel)
        if filter_result.allow_shaked:
            land_value = estimated_land_value
            if land_value is None:
                land_value = building.estimated_value_per_sqm
            shaked = calculate_shaked(building, parcel, land_value, tama38=tama38)

        hfp2666 = None
        if filter_result.allow_hfp2666:
            hfp2666 = calculate_hfp2666(
                building, parcel, manual_district_id, manual_sub_area_id,
            )

        logger.debug(
            "Parcel %s/%s: filter=%s tracks=%s",
            parcel.gush, parcel.helka, filter_result.status.value,
            [name for name, r in (("A", tama38), ("B", shaked), ("C", hfp2666)) if r],
        )

        return EfesReport(
            parcel=parcel,
            building=building,
            filter_result=filter_result,
            tama38=tama38,
            shaked=shaked,
            hfp2666=hfp2666,
            comparison=compare_tracks(tama38, shaked, hfp2666),
        )
