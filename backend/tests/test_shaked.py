"""Tests for the Shaked alternative (Amendment 139) calculator."""

from __future__ import annotations

import pytest

from efes.models.schemas import BuildingInput, ParcelContext
from efes.rights_engine.shaked import calculate_betterment_levy, calculate_shaked
from efes.rights_engine.tama38 import calculate_tama38


@pytest.fixture
def parcel():
    return ParcelContext(gush=10810, helka=42, plot_area=1011)


@pytest.fixture
def building():
    return BuildingInput(
        existing_contour=142,
        existing_floors=3,
        existing_units_per_floor=1,
        total_existing_units=2,
    )


class TestCeiling:
    def test_ceiling_dominates(self, building, parcel):
        result = calculate_shaked(building, parcel)
        assert result.existing_gross_area == 426
        assert result.shaked_ceiling == 1704
        assert result.total_primary_area == 1704
        assert result.baseline_total_primary_area == pytest.approx(1151.5)

    def test_never_below_tama38(self, parcel):
        """Small existing building on a large plot: the ceiling loses."""
        building = BuildingInput(
            existing_contour=50,
            existing_floors=1,
            existing_units_per_floor=1,
            total_existing_units=1,
        )
        big_plot = parcel.model_copy(update={"plot_area": 2000})
        tama = calculate_tama38(building, big_plot)
        result = calculate_shaked(building, big_plot)
        assert result.shaked_ceiling == 200
        assert result.total_primary_area == tama.total_primary_area
        assert result.comparison_vs_tama.area_difference == 0
        assert result.comparison_vs_tama.units_difference == 0

    @pytest.mark.parametrize("contour, floors, plot", [
        (142, 3, 1011), (300, 4, 500), (80, 2, 3000), (0, 0, 800), (500, 8, 200),
    ])
    def test_floor_property(self, contour, floors, plot):
        building = BuildingInput(
            existing_contour=contour,
            existing_floors=floors,
            existing_units_per_floor=2,
            total_existing_units=int(floors * 2),
        )
        parcel = ParcelContext(plot_area=plot)
        tama = calculate_tama38(building, parcel)
        assert calculate_shaked(building, parcel).total_primary_area >= tama.total_primary_area


class TestRecomputedDerivations:
    def test_units_and_split(self, building, parcel):
        result = calculate_shaked(building, parcel)
        assert result.potential_units_low == 20
        assert result.potential_units_high == 21
        assert result.developer_units_high == 19
        assert result.total_mamad == 21 * 12
        assert result.total_balcony == 21 * 12
        assert result.developer_primary == 1704 - 310

    def test_tenant_returns_unchanged(self, building, parcel):
        tama = calculate_tama38(building, parcel)
        result = calculate_shaked(building, parcel)
        assert result.returned_primary_to_tenants == tama.returned_primary_to_tenants
        assert result.returned_mamad_to_tenants == tama.returned_mamad_to_tenants

    def test_baseline_fields_carried(self, building, parcel):
        tama = calculate_tama38(building, parcel)
        result = calculate_shaked(building, parcel)
        assert result.tbe_total == tama.tbe_total
        assert result.policy_total == tama.policy_total

    def test_comparison(self, building, parcel):
        result = calculate_shaked(building, parcel)
        assert result.comparison_vs_tama.area_difference == pytest.approx(552.5)
        assert result.comparison_vs_tama.units_difference == 7

    def test_reuses_given_tama38(self, building, parcel):
        tama = calculate_tama38(building, parcel)
        assert calculate_shaked(building, parcel, tama38=tama) == calculate_shaked(building, parcel)

    def test_inclusive_housing_on_new_units(self, building):
        parcel = ParcelContext(plot_area=1011, neighborhood="מרכז הכרמל")
        bigger = building.model_copy(update={"existing_floors": 4})   # ceiling 2272
        result = calculate_shaked(bigger, parcel)
        assert result.developer_units_high == 25
        assert result.inclusive_housing.applies is True
        assert result.inclusive_housing.mandated_units == 3
        assert result.inclusive_housing.marketable_units == 22
        assert result.inclusive_housing_area == 3 * 85


class TestRightsHolders:
    def test_default_equals_existing_units(self, building, parcel):
        explicit = building.model_copy(update={"total_rights_holders": 2})
        assert calculate_shaked(building, parcel) == calculate_shaked(explicit, parcel)

    def test_override_changes_developer_units(self, building, parcel):
        result = calculate_shaked(building.model_copy(update={"total_rights_holders": 3}), parcel)
        assert result.developer_units_high == 18


class TestBettermentLevy:
    def test_absent_without_value(self, building, parcel):
        result = calculate_shaked(building, parcel)
        assert result.betterment_levy_amount is None
        assert result.betterment_levy_rate == 0.25

    def test_absent_for_zero_value(self, building, parcel):
        assert calculate_shaked(building, parcel, 0).betterment_levy_amount is None

    def test_computed_with_value(self, building, parcel):
        result = calculate_shaked(building, parcel, estimated_value_per_sqm=10000)
        assert result.betterment_levy_base == 1036          # 1704 − 668
        assert result.betterment_levy_amount == 2_590_000

    def test_levy_function(self):
        assert calculate_betterment_levy(1000, 600, 4000) == 400_000
        assert calculate_betterment_levy(1000, 600, None) is None
        assert calculate_betterment_levy(1000, 600, -5) is None
