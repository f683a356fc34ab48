"""
Shaked alternative / Amendment 139 calculator (חלופת שקד - תיקון 139).

Same base as TAMA 38, but the entitlement may rise to 400% of the existing
gross floor area in exchange for a 25% betterment levy.  The alternative
ceiling never lowers the result below the TAMA 38 total.

Every downstream figure (units, service areas, developer split, paledelet,
protected-room cap, inclusive housing) is recomputed on the new entitlement.
Tenant returns do not change between the tracks and are taken from TAMA 38.
"""

from __future__ import annotations

import logging
from dataclasses import asdict

from efes.models.schemas import (
    BuildingInput, ParcelContext, TrackAResult, TrackBResult, TrackComparison,
)
from efes.rights_engine.derivations import (
    TenantReturn, allocate, average_apartment_size, derive_units, round_half_up,
)
from efes.rights_engine.rules import (
    BALCONY_PER_UNIT, BETTERMENT_LEVY_RATE, SHAKED_MAX_DEMOLISH_REBUILD,
)
from efes.rights_engine.tama38 import calculate_tama38

logger = logging.getLogger(__name__)

# Fields carried over from TAMA 38 unchanged: inputs, policy areas and the
# statutory base.  Everything else is recomputed.
_BASELINE_FIELDS = (
    "existing_contour", "existing_floors", "additional_floors",
    "existing_units_per_floor", "total_existing_units", "total_rights_holders",
    "expanded_floor_per_unit", "expanded_typical_floor", "expanded_total",
    "existing_unit_bonus", "pilotis_area", "policy_total",
    "plot_area", "building_percentage", "tbe_base_area", "relief_percentage",
    "tbe_relief", "tbe_bonus_floors", "tbe_total", "density_per_dunam",
)


def calculate_betterment_levy(
    entitlement: float,
    statutory_total: float,
    estimated_value_per_sqm: float | None,
) -> int | None:
    """Levy on the area above base rights, or None without a land-value estimate.

    None is deliberate: a computed-but-zero levy would mislead.
    """
    if not estimated_value_per_sqm or estimated_value_per_sqm <= 0:
        return None
    return round_half_up((entitlement - statutory_total) * estimated_value_per_sqm * BETTERMENT_LEVY_RATE)


def calculate_shaked(
    building: BuildingInput,
    parcel: ParcelContext,
    estimated_value_per_sqm: float | None = None,
    tama38: TrackAResult | None = None,
) -> TrackBResult:
    """Compute the Shaked entitlement on top of a full TAMA 38 result."""
    if tama38 is None:
        tama38 = calculate_tama38(building, parcel)

    existing_gross_area = building.existing_gross_area
    shaked_ceiling = round_half_up(existing_gross_area * SHAKED_MAX_DEMOLISH_REBUILD)
    entitlement = max(tama38.total_primary_area, shaked_ceiling)
    if entitlement > tama38.total_primary_area:
        logger.debug(
            "Shaked ceiling %s exceeds TAMA 38 total %s",
            shaked_ceiling, tama38.total_primary_area,
        )

    units = derive_units(
        entitlement,
        average_apartment_size(building),
        tama38.plot_area,
        building.density_per_dunam,
    )
    tenant_return = TenantReturn(
        rights_holders=tama38.existing_units_to_return,
        returned_primary=tama38.returned_primary_to_tenants,
        returned_mamad=tama38.returned_mamad_to_tenants,
    )
    allocation = allocate(
        entitlement,
        units,
        building,
        tama38.plot_area,
        tenant_return,
        BALCONY_PER_UNIT,
        parcel.neighborhood,
    )

    baseline = {name: getattr(tama38, name) for name in _BASELINE_FIELDS}
    return TrackBResult(
        **baseline,
        **asdict(allocation),
        baseline_total_primary_area=tama38.total_primary_area,
        existing_gross_area=existing_gross_area,
        shaked_multiplier=SHAKED_MAX_DEMOLISH_REBUILD,
        shaked_ceiling=shaked_ceiling,
        betterment_levy_rate=BETTERMENT_LEVY_RATE,
        estimated_value_per_sqm=estimated_value_per_sqm,
        betterment_levy_base=entitlement - tama38.tbe_total,
        betterment_levy_amount=calculate_betterment_levy(
            entitlement, tama38.tbe_total, estimated_value_per_sqm,
        ),
        comparison_vs_tama=TrackComparison(
            area_difference=entitlement - tama38.total_primary_area,
            units_difference=units.low - tama38.potential_units_low,
        ),
    )
