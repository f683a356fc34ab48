"""
HFP/2666 district and sub-area resolution.

District lookup is a first-match substring scan of the name table against the
parcel's neighborhood and quarter.  This is the municipal rule as published,
not an approximation to be tightened into exact matching: changing it changes
which parcels land in which district.

Sub-area resolution, in order:
  1. A manual sub-area id wins unconditionally.
  2. A district with a single sub-area resolves to it.
  3. Sub-areas are scanned in declaration order; unit-count conditions are
     tested against the existing-unit count, first match wins.  Consolidation
     and focal-hub sub-areas are manual-only and never auto-selected.
  4. Otherwise the sub-area flagged default, or the first declared.
"""

from __future__ import annotations

import logging

from efes.models.schemas import BuildingInput, ParcelContext
from efes.rights_engine.rules import (
    DISTRICT_NAME_MAP,
    District,
    FocalHub,
    ParcelConsolidation,
    StrengtheningOnly,
    SubArea,
    SubAreaCondition,
    UnitCountMaximum,
    UnitCountMinimum,
    get_district,
)

logger = logging.getLogger(__name__)


def find_district(parcel: ParcelContext) -> District | None:
    """Map a parcel's neighborhood/quarter to its HFP/2666 district."""
    neighborhood = (parcel.neighborhood or "").strip()
    quarter = (parcel.quarter or "").strip()

    for key, district_id in DISTRICT_NAME_MAP.items():
        if key in neighborhood or key in quarter:
            return get_district(district_id)

    logger.debug("No HFP/2666 district for neighborhood=%r quarter=%r", neighborhood, quarter)
    return None


def is_manual_only(condition: SubAreaCondition | None) -> bool:
    """True for sub-areas that require an explicit caller selection."""
    if condition is None:
        return False
    if isinstance(condition, (ParcelConsolidation, FocalHub)):
        return True
    if isinstance(condition, (UnitCountMinimum, UnitCountMaximum, StrengtheningOnly)):
        return False
    raise TypeError(f"Unhandled sub-area condition: {condition!r}")


def condition_matches(condition: SubAreaCondition | None, existing_units: int) -> bool:
    """Whether an automatic scan may select a sub-area with this condition.

    Only unit-count conditions can be tested from building input; every other
    kind (and no condition at all) is reachable through the default, a single
    sub-area, or a manual selection.
    """
    if condition is None:
        return False
    if isinstance(condition, UnitCountMinimum):
        return existing_units >= condition.min_units
    if isinstance(condition, UnitCountMaximum):
        return existing_units <= condition.max_units
    if isinstance(condition, (StrengtheningOnly, ParcelConsolidation, FocalHub)):
        return False
    raise TypeError(f"Unhandled sub-area condition: {condition!r}")


def resolve_sub_area(
    district: District,
    building: BuildingInput,
    manual_sub_area_id: str | None = None,
) -> SubArea | None:
    """Pick the governing sub-area within a district."""
    if manual_sub_area_id:
        sub_area = district.get_sub_area(manual_sub_area_id)
        if sub_area is None:
            logger.debug("Sub-area %r not in district %s", manual_sub_area_id, district.id)
        return sub_area

    if not district.sub_areas:
        return None
    if len(district.sub_areas) == 1:
        return district.sub_areas[0]

    for sub_area in district.sub_areas:
        if is_manual_only(sub_area.condition):
            continue
        if condition_matches(sub_area.condition, building.total_existing_units):
            return sub_area

    for sub_area in district.sub_areas:
        if sub_area.is_default:
            return sub_area
    return district.sub_areas[0]
