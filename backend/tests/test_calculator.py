"""Tests for the main RightsCalculator."""

from __future__ import annotations

import pytest

from efes.models.schemas import BuildingInput, BuildingType, FilterStatus, ParcelContext
from efes.rights_engine.calculator import RightsCalculator, compare_tracks
from efes.rights_engine.hfp2666 import calculate_hfp2666
from efes.rights_engine.tama38 import calculate_tama38


@pytest.fixture
def calculator():
    return RightsCalculator()


def _make_parcel(**overrides) -> ParcelContext:
    fields = {
        "gush": 10810,
        "helka": 42,
        "plot_area": 1011,
        "neighborhood": "נווה שאנן",
        "street_name": "הרצל",
    }
    fields.update(overrides)
    return ParcelContext(**fields)


def _make_building(**overrides) -> BuildingInput:
    fields = {
        "existing_contour": 142,
        "existing_floors": 3,
        "existing_units_per_floor": 1,
        "total_existing_units": 2,
    }
    fields.update(overrides)
    return BuildingInput(**fields)


class TestCalculate:
    def test_all_tracks_when_clear(self, calculator):
        report = calculator.calculate(_make_parcel(), _make_building())
        assert report.filter_result.status == FilterStatus.CLEAR
        assert report.tama38 is not None
        assert report.shaked is not None
        assert report.hfp2666 is not None

    def test_tracks_consistent(self, calculator):
        report = calculator.calculate(_make_parcel(), _make_building())
        assert report.tama38.tbe_total == 668
        assert report.shaked.total_primary_area == 1704
        assert report.shaked.baseline_total_primary_area == report.tama38.total_primary_area
        # Neve Shaanan 9A, small-building override: density cap 11 × 85
        assert report.hfp2666.sub_area_id == "9A"
        assert report.hfp2666.small_building_override is True
        assert report.hfp2666.final_primary_area == 935

    def test_blocked_tracks_are_none(self, calculator):
        report = calculator.calculate(_make_parcel(is_conservation_building=True), _make_building())
        assert report.filter_result.status == FilterStatus.BLOCKED
        assert report.tama38 is None
        assert report.shaked is None
        assert report.hfp2666 is None
        assert report.comparison.rows == []
        assert report.comparison.best_track is None

    def test_limited_single_family(self, calculator):
        building = _make_building(building_type=BuildingType.SINGLE_FAMILY)
        report = calculator.calculate(_make_parcel(), building)
        assert report.filter_result.max_addition == 25
        assert report.tama38 is None

    def test_manual_overrides_passed_through(self, calculator):
        report = calculator.calculate(
            _make_parcel(), _make_building(),
            manual_district_id=5, manual_sub_area_id="5B",
        )
        assert report.hfp2666.is_strengthening_only is True
        assert report.hfp2666.strengthen_addition == 50

    def test_deterministic(self, calculator):
        parcel, building = _make_parcel(), _make_building()
        first = calculator.calculate(parcel, building).model_dump_json()
        second = calculator.calculate(parcel, building).model_dump_json()
        assert first == second


class TestLandValue:
    def test_explicit_value(self, calculator):
        report = calculator.calculate(_make_parcel(), _make_building(), estimated_land_value=10000)
        assert report.shaked.betterment_levy_amount == 2_590_000

    def test_falls_back_to_building_estimate(self, calculator):
        building = _make_building(estimated_value_per_sqm=10000)
        report = calculator.calculate(_make_parcel(), building)
        assert report.shaked.betterment_levy_amount == 2_590_000

    def test_explicit_value_wins(self, calculator):
        building = _make_building(estimated_value_per_sqm=10000)
        report = calculator.calculate(_make_parcel(), building, estimated_land_value=20000)
        assert report.shaked.betterment_levy_amount == 5_180_000

    def test_no_value(self, calculator):
        report = calculator.calculate(_make_parcel(), _make_building())
        assert report.shaked.betterment_levy_amount is None


class TestComparison:
    def test_rows_and_best(self, calculator):
        report = calculator.calculate(_make_parcel(), _make_building())
        rows = {row.track: row for row in report.comparison.rows}
        assert list(rows) == ["tama38", "shaked", "hfp2666"]
        assert rows["tama38"].total_primary_area == pytest.approx(1151.5)
        assert rows["hfp2666"].total_primary_area == 935
        assert report.comparison.best_track == "shaked"

    def test_unranked_track_listed(self):
        parcel, building = _make_parcel(), _make_building()
        tama = calculate_tama38(building, parcel)
        hfp = calculate_hfp2666(building, parcel, 5, "5B")
        summary = compare_tracks(tama, None, hfp)
        assert [row.track for row in summary.rows] == ["tama38", "hfp2666"]
        assert summary.rows[1].total_primary_area is None
        assert summary.rows[1].marketable_units is None
        assert summary.best_track == "tama38"

    def test_tie_goes_to_earlier_track(self):
        parcel = _make_parcel(plot_area=2000)
        building = _make_building(existing_contour=50, existing_floors=1, total_existing_units=1)
        tama = calculate_tama38(building, parcel)
        summary = compare_tracks(tama, tama, None)
        assert summary.best_track == "tama38"

    def test_empty(self):
        assert compare_tracks(None, None, None).best_track is None
