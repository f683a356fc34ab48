"""
HFP/2666 district renewal plan calculator (חפ/2666, טבלה 5).

Entitlement is plot area × the governing sub-area multiplier, held under two
hard zoning ceilings:

    raw        = plot area × multiplier
    by floors  = max floors × (plot area × 80% ground coverage)
    by density = floor(plot dunams × units per dunam) × average apartment
    final      = min(raw, by floors, by density)

Unlike TAMA 38, the density figure here is a ceiling, not a second estimate
of potential, so units are derived from area alone.

Outcomes, checked in order:
  - Building-H variant: citywide, bypasses district resolution
    (existing gross area × 3.0, capped at 8 floors, no density cap)
  - strengthening-only sub-area: flat addition per existing unit, no caps
  - unresolved district/sub-area: no figures, manual selection required
  - normal demolition-rebuild, with the small-building override applied first
"""

from __future__ import annotations

import logging
from dataclasses import asdict

from efes.models.schemas import BuildingInput, ParcelContext, TrackCResult
from efes.rights_engine.derivations import (
    allocate, average_apartment_size, compute_tenant_return, derive_units,
    floor_units, round_half_up,
)
from efes.rights_engine.districts import find_district, resolve_sub_area
from efes.rights_engine.rules import (
    BUILDING_H_MAX_FLOORS,
    BUILDING_H_MULTIPLIER,
    HFP_BALCONY_PER_UNIT,
    HFP_COVERAGE,
    SMALL_BUILDING_DENSITY,
    SMALL_BUILDING_EXEMPT_DISTRICTS,
    SMALL_BUILDING_MAX_FLOORS,
    SMALL_BUILDING_MAX_UNITS,
    SMALL_BUILDING_MULTIPLIER,
    District,
    StrengtheningOnly,
    SubArea,
    get_district,
)

logger = logging.getLogger(__name__)


def small_building_override_applies(district_id: int, total_existing_units: int) -> bool:
    return (
        district_id not in SMALL_BUILDING_EXEMPT_DISTRICTS
        and 0 < total_existing_units <= SMALL_BUILDING_MAX_UNITS
    )


def floor_cap(max_floors: float, plot_area: float) -> int:
    return round_half_up(max_floors * plot_area * HFP_COVERAGE)


def density_cap(plot_area: float, density: float, avg_size: float) -> float:
    return floor_units(plot_area / 1000 * density) * avg_size


def _base_fields(building: BuildingInput, plot_area: float) -> dict:
    """Fields present on every Track C outcome."""
    tenant_return = compute_tenant_return(building)
    return {
        "plot_area": plot_area,
        "total_existing_units": building.total_existing_units,
        "total_rights_holders": building.rights_holders,
        "avg_apartment_size": average_apartment_size(building),
        "existing_units_to_return": tenant_return.rights_holders,
        "returned_primary_to_tenants": tenant_return.returned_primary,
        "returned_mamad_to_tenants": tenant_return.returned_mamad,
        "returned_paledelet_to_tenants": tenant_return.returned_paledelet,
        "mamad_size": building.mamad_size,
    }


def _district_fields(district: District | None, sub_area: SubArea | None) -> dict:
    return {
        "district_id": district.id if district else None,
        "district_name": district.name if district else None,
        "sub_area_id": sub_area.id if sub_area else None,
        "sub_area_name": sub_area.name if sub_area else None,
    }


def _entitlement_fields(
    final_primary_area: float,
    building: BuildingInput,
    parcel: ParcelContext,
    plot_area: float,
) -> dict:
    """Base fields plus units, service areas and the owner/developer split."""
    units = derive_units(final_primary_area, average_apartment_size(building), plot_area)
    allocation = allocate(
        final_primary_area,
        units,
        building,
        plot_area,
        compute_tenant_return(building),
        HFP_BALCONY_PER_UNIT,
        parcel.neighborhood,
    )
    return {**_base_fields(building, plot_area), **asdict(allocation)}


# ──────────────────────────────────────────────────────────────────
# OUTCOMES
# ──────────────────────────────────────────────────────────────────

def calculate_building_h(building: BuildingInput, parcel: ParcelContext) -> TrackCResult:
    """Citywide H-shaped building variant."""
    plot_area = building.resolve_plot_area(parcel)
    existing_gross_area = building.existing_gross_area
    raw = round_half_up(existing_gross_area * BUILDING_H_MULTIPLIER)
    by_floors = floor_cap(BUILDING_H_MAX_FLOORS, plot_area)
    final = min(raw, by_floors)

    return TrackCResult(
        **_entitlement_fields(final, building, parcel, plot_area),
        district_data_available=True,
        is_building_h=True,
        multiplier=BUILDING_H_MULTIPLIER,
        effective_multiplier=BUILDING_H_MULTIPLIER,
        effective_max_floors=BUILDING_H_MAX_FLOORS,
        existing_gross_area=existing_gross_area,
        raw_primary_area=raw,
        max_by_floors=by_floors,
        final_primary_area=final,
    )


def calculate_strengthening_only(
    building: BuildingInput,
    parcel: ParcelContext,
    district: District,
    sub_area: SubArea,
    condition: StrengtheningOnly,
) -> TrackCResult:
    """No demolition: a flat addition per existing unit, no capped figures."""
    plot_area = building.resolve_plot_area(parcel)
    return TrackCResult(
        **_base_fields(building, plot_area),
        **_district_fields(district, sub_area),
        district_data_available=True,
        is_strengthening_only=True,
        strengthen_addition=building.total_existing_units * condition.addition_per_unit,
    )


def calculate_unresolved(
    building: BuildingInput,
    parcel: ParcelContext,
    district: District | None,
) -> TrackCResult:
    plot_area = building.resolve_plot_area(parcel)
    return TrackCResult(
        **_base_fields(building, plot_area),
        **_district_fields(district, None),
        district_data_available=False,
        manual_selection_required=True,
    )


def calculate_demolition_rebuild(
    building: BuildingInput,
    parcel: ParcelContext,
    district: District,
    sub_area: SubArea,
) -> TrackCResult:
    plot_area = building.resolve_plot_area(parcel)
    avg_size = average_apartment_size(building)

    multiplier = sub_area.multiplier
    max_floors = sub_area.max_floors
    density = sub_area.max_density
    override = small_building_override_applies(district.id, building.total_existing_units)
    if override:
        # tightens only: a stricter sub-area rule is kept as is
        multiplier = min(multiplier, SMALL_BUILDING_MULTIPLIER)
        max_floors = min(max_floors, SMALL_BUILDING_MAX_FLOORS)
        density = min(density, SMALL_BUILDING_DENSITY)
        logger.debug(
            "Small-building override in district %s: multiplier %s → %s",
            district.id, sub_area.multiplier, multiplier,
        )

    raw = round_half_up(plot_area * multiplier)
    by_floors = floor_cap(max_floors, plot_area)
    by_density = density_cap(plot_area, density, avg_size)
    final = min(raw, by_floors, by_density)

    return TrackCResult(
        **_district_fields(district, sub_area),
        **_entitlement_fields(final, building, parcel, plot_area),
        district_data_available=True,
        small_building_override=override,
        multiplier=sub_area.multiplier,
        effective_multiplier=multiplier,
        effective_max_floors=max_floors,
        effective_density=density,
        raw_primary_area=raw,
        max_by_floors=by_floors,
        max_by_density=by_density,
        final_primary_area=final,
    )


# ──────────────────────────────────────────────────────────────────
# ENTRY POINT
# ──────────────────────────────────────────────────────────────────

def calculate_hfp2666(
    building: BuildingInput,
    parcel: ParcelContext,
    manual_district_id: int | None = None,
    manual_sub_area_id: str | None = None,
) -> TrackCResult:
    """Compute the HFP/2666 entitlement for a parcel.

    Manual district and sub-area ids take precedence over the name lookup
    and the condition scan.  An unknown manual id yields an unresolved
    result rather than an error.
    """
    if building.is_building_h:
        return calculate_building_h(building, parcel)

    if manual_district_id is not None:
        district = get_district(manual_district_id)
    else:
        district = find_district(parcel)

    sub_area = resolve_sub_area(district, building, manual_sub_area_id) if district else None

    if sub_area is not None and isinstance(sub_area.condition, StrengtheningOnly):
        return calculate_strengthening_only(building, parcel, district, sub_area, sub_area.condition)

    if district is None or sub_area is None:
        logger.debug(
            "HFP/2666 unresolved (district=%s, sub_area=%s)",
            manual_district_id if district is None else district.id, manual_sub_area_id,
        )
        return calculate_unresolved(building, parcel, district)

    return calculate_demolition_rebuild(building, parcel, district, sub_area)
