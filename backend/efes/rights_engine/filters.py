"""
Exclusion filter pipeline.

Every parcel passes through an ordered list of eligibility checks before any
track runs.  Checks are ordered most restrictive first and the pipeline
returns on the first non-CLEAR result:

  1. conservation building          → BLOCKED
  2. exclusion zone (חפ/2000)        → LIMITED, 25 m² add-on, no new units
  3. pinui-binui master-plan area   → REDIRECTED to the governing plan
  4. single-family house            → LIMITED, 25 m² seismic addition
  5. TAMA 38 rights already used    → BLOCKED

Usage::

    from efes.rights_engine.filters import evaluate_filters
    result = evaluate_filters(parcel, building)
    if result.allow_tama38:
        ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from efes.models.schemas import (
    BuildingInput, BuildingType, FilterResult, FilterStatus, ParcelContext,
)
from efes.rights_engine.rules import (
    EXCLUSION_ZONES, PINUI_BINUI_AREAS, SINGLE_FAMILY_MAX_ADDITION,
)

logger = logging.getLogger(__name__)

CLEAR = FilterResult()


@dataclass(frozen=True)
class FilterCheck:
    key: str
    name: str
    check_fn: Callable[[ParcelContext, BuildingInput], FilterResult]


def _blocked(reason: str, details: str) -> FilterResult:
    return FilterResult(
        status=FilterStatus.BLOCKED,
        reason=reason,
        details=details,
        allow_tama38=False,
        allow_shaked=False,
        allow_hfp2666=False,
    )


def _limited(reason: str, details: str, max_addition: float) -> FilterResult:
    return FilterResult(
        status=FilterStatus.LIMITED,
        reason=reason,
        details=details,
        allow_tama38=False,
        allow_shaked=False,
        allow_hfp2666=False,
        max_addition=max_addition,
    )


# ──────────────────────────────────────────────────────────────────
# CHECKS
# ──────────────────────────────────────────────────────────────────

def check_conservation_building(parcel: ParcelContext, building: BuildingInput) -> FilterResult:
    if not parcel.is_conservation_building:
        return CLEAR
    return _blocked(
        "מבנה לשימור",
        'המבנה מסווג כמבנה לשימור. תמ"א 38 וחפ/2666 אינם חלים על מבנים לשימור. '
        "נדרש אישור מחלקת שימור.",
    )


def _in_exclusion_zone(zone: dict, gush: int | None, street: str) -> bool:
    if gush is not None and not zone.get("street_match_only"):
        if gush in zone.get("gush_numbers", ()):
            return True
        gush_range = zone.get("gush_range")
        if gush_range and gush_range[0] <= gush <= gush_range[1]:
            return True
    if street and zone.get("street_match_only"):
        return any(name in street for name in zone.get("streets", ()))
    return False


def find_exclusion_zone(parcel: ParcelContext) -> dict | None:
    """First exclusion zone the parcel falls in.

    Block-numbered zones match on gush only; their street lists are
    descriptive. Street-only zones match on a street substring.
    """
    street = (parcel.street_name or "").strip()
    for zone in EXCLUSION_ZONES.values():
        if _in_exclusion_zone(zone, parcel.gush, street):
            return zone
    return None


def check_exclusion_zone(parcel: ParcelContext, building: BuildingInput) -> FilterResult:
    zone = find_exclusion_zone(parcel)
    if zone is None:
        return CLEAR
    max_addition = zone["max_addition"]
    return _limited(
        f"אזור החרגה: {zone['name']}",
        f'{zone["reason"]}. תוספת מקסימלית: {max_addition} מ"ר (ממ"ד בלבד) ללא דירות יזם חדשות.',
        max_addition,
    )


def check_master_plan_area(parcel: ParcelContext, building: BuildingInput) -> FilterResult:
    neighborhood = (parcel.neighborhood or "").strip()
    if not neighborhood:
        return CLEAR
    for area in PINUI_BINUI_AREAS:
        if any(name in neighborhood for name in area["neighborhoods"]):
            return FilterResult(
                status=FilterStatus.REDIRECTED,
                reason=f"אזור פינוי-בינוי מתחמי: {area['name']}",
                details=(
                    f"החלקה נמצאת באזור תוכנית אב {area['plan_id']}. {area['description']}. "
                    "חישוב זכויות בודד אינו רלוונטי - הזכויות נקבעות ברמה המתחמית."
                ),
                allow_tama38=False,
                allow_shaked=False,
                allow_hfp2666=False,
                redirect_plan=area["plan_id"],
            )
    return CLEAR


def check_single_family(parcel: ParcelContext, building: BuildingInput) -> FilterResult:
    if building.building_type != BuildingType.SINGLE_FAMILY:
        return CLEAR
    return _limited(
        "בית חד-משפחתי (יח״ד אחת)",
        f"מבנה הכולל יח״ד אחת בלבד זכאי לתוספת חיזוק סייסמי של {SINGLE_FAMILY_MAX_ADDITION} "
        "מ״ר בלבד (כולל ממ״ד). לא יותרו תוספת יח״ד וקומות מכח תמ״א 38.",
        SINGLE_FAMILY_MAX_ADDITION,
    )


def check_existing_tama38(parcel: ParcelContext, building: BuildingInput) -> FilterResult:
    if not building.has_existing_tama38:
        return CLEAR
    return _blocked(
        'זכויות תמ"א 38 מומשו',
        'המבנה כבר מימש זכויות בנייה מכוח תמ"א 38. תוכנית חפ/2666 אינה חלה על מבנים '
        "שכבר מימשו זכויות. ניתן לבחון רק מסלולי הקלה נוספים.",
    )


# Most restrictive first.
FILTER_PIPELINE: tuple[FilterCheck, ...] = (
    FilterCheck("conservation", "מבנה לשימור", check_conservation_building),
    FilterCheck("exclusion_zone", "אזורי החרגה (חפ/2000)", check_exclusion_zone),
    FilterCheck("master_plan", "תוכניות אב לפינוי-בינוי", check_master_plan_area),
    FilterCheck("single_family", "בית חד-משפחתי", check_single_family),
    FilterCheck("existing_tama38", 'תמ"א 38 קיימת', check_existing_tama38),
)


def evaluate_filters(parcel: ParcelContext, building: BuildingInput) -> FilterResult:
    """Run the pipeline; the first non-CLEAR check decides."""
    for check in FILTER_PIPELINE:
        result = check.check_fn(parcel, building)
        if result.status != FilterStatus.CLEAR:
            logger.debug("Filter %s fired: %s", check.key, result.status.value)
            return result
    return CLEAR
