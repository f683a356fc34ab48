"""
Shared downstream derivations for all entitlement tracks.

Given a track's total primary entitlement, derive the unit range, service
areas (protected room + balcony), the existing-owner / developer split, the
paledelet accounting (primary + protected room, no balconies), the
protected-room size cap and the inclusive-housing overlay.

Existing owners keep what is returned to them; the developer keeps the
remainder.  Developer unit counts are never clamped: a negative figure
means the existing units over-commit the entitlement and must be surfaced.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from efes.models.schemas import BuildingInput, InclusiveHousing
from efes.rights_engine.inclusive_housing import apply_inclusive_housing
from efes.rights_engine.rules import (
    DEFAULT_AVG_APARTMENT, MAMAD_MAX_NET_SIZE, MAMAD_PER_UNIT, MAX_UNITS_PER_FLOOR,
)

# Guards floor/ceil against binary noise (1.15 × 20 = 22.999999999999996).
_PRECISION = 9


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive figures, as the municipal sheets do."""
    return math.floor(value + 0.5)


def floor_units(value: float) -> int:
    return math.floor(round(value, _PRECISION))


def ceil_units(value: float) -> int:
    return math.ceil(round(value, _PRECISION))


def average_apartment_size(building: BuildingInput) -> float:
    return building.min_apartment_size or DEFAULT_AVG_APARTMENT


def density_units(plot_area: float, density_per_dunam: float | None) -> int | None:
    """Units allowed by a density figure, or None when no density is given."""
    if not density_per_dunam or density_per_dunam <= 0:
        return None
    return floor_units(plot_area / 1000 * density_per_dunam)


# ──────────────────────────────────────────────────────────────────
# TENANT RETURNS
# ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TenantReturn:
    rights_holders: int
    returned_primary: int
    returned_mamad: float

    @property
    def returned_paledelet(self) -> float:
        return self.returned_primary + self.returned_mamad


def compute_tenant_return(building: BuildingInput) -> TenantReturn:
    """Area returned to existing rights-holders.

    Each holder receives the average existing unit plus the primary return
    allowance, and a protected room.  Balconies are never returned.
    """
    rights_holders = building.rights_holders
    avg_existing_unit = building.existing_contour / (building.existing_units_per_floor or 1)
    returned_primary = round_half_up(
        (avg_existing_unit + building.primary_return_per_unit) * rights_holders
    )
    return TenantReturn(
        rights_holders=rights_holders,
        returned_primary=returned_primary,
        returned_mamad=building.mamad_return_per_unit * rights_holders,
    )


# ──────────────────────────────────────────────────────────────────
# UNIT DERIVATION
# ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class UnitRange:
    area_based_low: int
    area_based_high: int
    density_based: Optional[int]
    low: int
    high: int


def derive_units(
    total_primary_area: float,
    avg_size: float,
    plot_area: float,
    density_per_dunam: float | None = None,
) -> UnitRange:
    """Derive the potential unit range.

    Area-based: floor/ceil of area ÷ average apartment.  When a density is
    supplied, the density-based count is an independent floor on potential,
    so low and high each take the larger of the two methods.
    """
    area_low = floor_units(total_primary_area / avg_size)
    area_high = ceil_units(total_primary_area / avg_size)
    by_density = density_units(plot_area, density_per_dunam)

    if by_density is None:
        return UnitRange(area_low, area_high, None, area_low, area_high)
    return UnitRange(
        area_based_low=area_low,
        area_based_high=area_high,
        density_based=by_density,
        low=max(area_low, by_density),
        high=max(area_high, by_density),
    )


# ──────────────────────────────────────────────────────────────────
# ALLOCATION
# ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Allocation:
    """Every figure downstream of the total primary entitlement."""
    total_primary_area: float
    avg_apartment_size: float
    area_based_units_low: int
    area_based_units_high: int
    density_based_units: Optional[int]
    potential_units_low: int
    potential_units_high: int
    existing_units_to_return: int
    developer_units_low: int
    developer_units_high: int
    number_of_floors: int
    max_units_per_floor: int
    mamad_per_unit: float
    total_mamad: float
    balcony_per_unit: float
    total_balcony: float
    returned_primary_to_tenants: int
    returned_mamad_to_tenants: float
    returned_paledelet_to_tenants: float
    mamad_size: Optional[float]
    mamad_excess_per_unit: float
    mamad_excess_deduction: float
    mamad_cap_warning: bool
    developer_primary: float
    developer_mamad: float
    developer_service: float
    developer_paledelet: float
    total_primary_project: float
    total_service_project: float
    total_paledelet: float
    units_per_dunam: float
    inclusive_housing: InclusiveHousing
    inclusive_housing_area: float


def allocate(
    total_primary_area: float,
    units: UnitRange,
    building: BuildingInput,
    plot_area: float,
    tenant_return: TenantReturn,
    balcony_per_unit: float,
    neighborhood: str | None,
) -> Allocation:
    """Split a track's entitlement between existing owners and the developer."""
    avg_size = average_apartment_size(building)
    rights_holders = tenant_return.rights_holders
    developer_low = units.low - rights_holders
    developer_high = units.high - rights_holders

    total_mamad = units.high * MAMAD_PER_UNIT
    total_balcony = units.high * balcony_per_unit
    total_service = total_mamad + total_balcony

    # Protected rooms above the regulatory net size count as primary area.
    excess_per_unit = 0.0
    if building.mamad_size is not None and building.mamad_size > MAMAD_MAX_NET_SIZE:
        excess_per_unit = building.mamad_size - MAMAD_MAX_NET_SIZE
    excess_deduction = excess_per_unit * max(developer_high, 0)

    developer_primary = total_primary_area - tenant_return.returned_primary - excess_deduction
    developer_mamad = total_mamad - tenant_return.returned_mamad

    units_per_floor = building.existing_units_per_floor or 1
    units_per_dunam = round(units.high / (plot_area / 1000), 1) if plot_area > 0 else 0.0

    inclusive = apply_inclusive_housing(developer_high, neighborhood)

    return Allocation(
        total_primary_area=total_primary_area,
        avg_apartment_size=avg_size,
        area_based_units_low=units.area_based_low,
        area_based_units_high=units.area_based_high,
        density_based_units=units.density_based,
        potential_units_low=units.low,
        potential_units_high=units.high,
        existing_units_to_return=rights_holders,
        developer_units_low=developer_low,
        developer_units_high=developer_high,
        number_of_floors=ceil_units(units.high / units_per_floor),
        max_units_per_floor=min(units.high, MAX_UNITS_PER_FLOOR),
        mamad_per_unit=MAMAD_PER_UNIT,
        total_mamad=total_mamad,
        balcony_per_unit=balcony_per_unit,
        total_balcony=total_balcony,
        returned_primary_to_tenants=tenant_return.returned_primary,
        returned_mamad_to_tenants=tenant_return.returned_mamad,
        returned_paledelet_to_tenants=tenant_return.returned_paledelet,
        mamad_size=building.mamad_size,
        mamad_excess_per_unit=excess_per_unit,
        mamad_excess_deduction=excess_deduction,
        mamad_cap_warning=excess_per_unit > 0,
        developer_primary=developer_primary,
        developer_mamad=developer_mamad,
        developer_service=total_service - tenant_return.returned_mamad,
        developer_paledelet=developer_primary + developer_mamad,
        total_primary_project=total_primary_area,
        total_service_project=total_service,
        total_paledelet=total_primary_area + total_mamad,
        units_per_dunam=units_per_dunam,
        inclusive_housing=inclusive,
        inclusive_housing_area=inclusive.mandated_units * avg_size,
    )
