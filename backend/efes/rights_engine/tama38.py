"""
TAMA 38 demolition-rebuild calculator (חפ/מד/2500 - מדיניות 2020).

Entitlement is the sum of two components:

  Policy bonus
    expanded typical floor = existing contour + 13 m² × units per floor
    × proposed additional floors
    + 13 m² × existing units (raw unit count, never the rights-holder override)
    + open ground-floor (pilotis) allowance

  Statutory base (ת.ב.ע)
    round(plot area × building percentage)
    + round(plot area × 6% relief)        additive, not on top of the base
    + bonus-floor allowance               currently always 0
"""

from __future__ import annotations

from dataclasses import asdict

from efes.models.schemas import BuildingInput, ParcelContext, TrackAResult
from efes.rights_engine.derivations import (
    allocate, average_apartment_size, compute_tenant_return, derive_units, round_half_up,
)
from efes.rights_engine.rules import (
    BALCONY_PER_UNIT, EXPANSION_PER_UNIT, SHEVES_RELIEF, TBE_BONUS_FLOORS,
)


def calculate_policy_bonus(building: BuildingInput) -> dict:
    """TAMA policy areas (חישוב שטחים בגין מדיניות הריסה ובנייה)."""
    expanded_typical_floor = (
        building.existing_contour + EXPANSION_PER_UNIT * building.existing_units_per_floor
    )
    expanded_total = expanded_typical_floor * building.additional_floors
    existing_unit_bonus = building.total_existing_units * EXPANSION_PER_UNIT
    return {
        "expanded_floor_per_unit": EXPANSION_PER_UNIT,
        "expanded_typical_floor": expanded_typical_floor,
        "expanded_total": expanded_total,
        "existing_unit_bonus": existing_unit_bonus,
        "pilotis_area": building.pilotis_area,
        "policy_total": expanded_total + existing_unit_bonus + building.pilotis_area,
    }


def calculate_statutory_base(plot_area: float, building_percentage: float) -> dict:
    """Zoning-plan base rights (חישוב שטחים בגין ת.ב.ע)."""
    tbe_base_area = round_half_up(plot_area * building_percentage)
    tbe_relief = round_half_up(plot_area * SHEVES_RELIEF)
    return {
        "plot_area": plot_area,
        "building_percentage": building_percentage,
        "tbe_base_area": tbe_base_area,
        "relief_percentage": SHEVES_RELIEF,
        "tbe_relief": tbe_relief,
        "tbe_bonus_floors": TBE_BONUS_FLOORS,
        "tbe_total": tbe_base_area + tbe_relief + TBE_BONUS_FLOORS,
    }


def calculate_tama38(building: BuildingInput, parcel: ParcelContext) -> TrackAResult:
    """Compute the baseline TAMA 38 entitlement and its developer split."""
    plot_area = building.resolve_plot_area(parcel)

    policy = calculate_policy_bonus(building)
    statutory = calculate_statutory_base(plot_area, building.building_percentage)
    total_primary_area = policy["policy_total"] + statutory["tbe_total"]

    units = derive_units(
        total_primary_area,
        average_apartment_size(building),
        plot_area,
        building.density_per_dunam,
    )
    allocation = allocate(
        total_primary_area,
        units,
        building,
        plot_area,
        compute_tenant_return(building),
        BALCONY_PER_UNIT,
        parcel.neighborhood,
    )

    return TrackAResult(
        existing_contour=building.existing_contour,
        existing_floors=building.existing_floors,
        additional_floors=building.additional_floors,
        existing_units_per_floor=building.existing_units_per_floor,
        total_existing_units=building.total_existing_units,
        total_rights_holders=building.rights_holders,
        density_per_dunam=building.density_per_dunam,
        **policy,
        **statutory,
        **asdict(allocation),
    )
