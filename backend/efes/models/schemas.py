from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from efes.rights_engine import rules


class _Record(BaseModel):
    """Immutable value: every field is assigned once, at construction."""
    model_config = {"frozen": True}


class BuildingType(str, Enum):
    MULTI_FAMILY = "multi_family"
    SINGLE_FAMILY = "single_family"
    DUPLEX = "duplex"


class FilterStatus(str, Enum):
    CLEAR = "CLEAR"
    BLOCKED = "BLOCKED"
    LIMITED = "LIMITED"
    REDIRECTED = "REDIRECTED"


# ──────────────────────────────────────────────────────────────────
# INPUTS
# ──────────────────────────────────────────────────────────────────

class ParcelContext(_Record):
    """Parcel attributes resolved by the geodata collaborator."""
    gush: Optional[int] = None
    helka: Optional[int] = None
    plot_area: float = 0
    neighborhood: Optional[str] = None
    quarter: Optional[str] = None
    sub_quarter: Optional[str] = None
    zoning_type: Optional[str] = None
    street_name: Optional[str] = None
    is_conservation_building: bool = False
    is_in_preservation_area: bool = False
    is_archaeological_site: bool = False
    is_unesco_core: bool = False
    is_unesco_buffer: bool = False


class BuildingInput(_Record):
    """User-declared building attributes."""
    existing_contour: float = 0                 # m² existing floor contour
    existing_floors: float = 0
    existing_units_per_floor: float = 0
    total_existing_units: int = 0
    total_rights_holders: Optional[int] = None  # defaults to total_existing_units
    additional_floors: float = 2.5
    pilotis_area: float = rules.DEFAULT_PILOTIS_AREA
    building_type: BuildingType = BuildingType.MULTI_FAMILY
    has_existing_tama38: bool = False
    min_apartment_size: float = rules.DEFAULT_AVG_APARTMENT
    building_percentage: float = rules.DEFAULT_BUILDING_PCT
    primary_return_per_unit: float = rules.DEFAULT_PRIMARY_RETURN
    mamad_return_per_unit: float = rules.DEFAULT_MAMAD_RETURN
    plot_area: float = 0                        # 0 → parcel plot area
    density_per_dunam: Optional[float] = None
    mamad_size: Optional[float] = None          # declared net protected-room size
    is_building_h: bool = False
    estimated_value_per_sqm: Optional[float] = None

    @property
    def rights_holders(self) -> int:
        if self.total_rights_holders is None:
            return self.total_existing_units
        return self.total_rights_holders

    @property
    def existing_gross_area(self) -> float:
        return self.existing_contour * self.existing_floors

    def resolve_plot_area(self, parcel: ParcelContext) -> float:
        return self.plot_area or parcel.plot_area


# ──────────────────────────────────────────────────────────────────
# FILTER PIPELINE
# ──────────────────────────────────────────────────────────────────

class FilterResult(_Record):
    status: FilterStatus = FilterStatus.CLEAR
    reason: str = ""
    details: str = ""
    allow_tama38: bool = True
    allow_shaked: bool = True
    allow_hfp2666: bool = True
    max_addition: Optional[float] = None
    redirect_plan: Optional[str] = None


# ──────────────────────────────────────────────────────────────────
# TRACK RESULTS
# ──────────────────────────────────────────────────────────────────

class InclusiveHousing(_Record):
    applies: bool = False
    rate: float = 0
    mandated_units: int = 0
    marketable_units: int = 0
    district_name: Optional[str] = None


class TrackAResult(_Record):
    """TAMA 38 demolition-rebuild entitlement (חפ/מד/2500)."""
    # Policy areas
    existing_contour: float
    existing_floors: float
    additional_floors: float
    existing_units_per_floor: float
    total_existing_units: int
    total_rights_holders: int
    expanded_floor_per_unit: float
    expanded_typical_floor: float
    expanded_total: float
    existing_unit_bonus: float
    pilotis_area: float
    policy_total: float

    # Statutory base (ת.ב.ע)
    plot_area: float
    building_percentage: float
    tbe_base_area: int
    relief_percentage: float
    tbe_relief: int
    tbe_bonus_floors: float
    tbe_total: float

    total_primary_area: float

    # Units
    avg_apartment_size: float
    area_based_units_low: int
    area_based_units_high: int
    density_per_dunam: Optional[float] = None
    density_based_units: Optional[int] = None
    potential_units_low: int
    potential_units_high: int
    existing_units_to_return: int
    developer_units_low: int
    developer_units_high: int

    # Service areas
    number_of_floors: int
    max_units_per_floor: int
    mamad_per_unit: float
    total_mamad: float
    balcony_per_unit: float
    total_balcony: float

    # Developer / existing-owner split
    returned_primary_to_tenants: int
    returned_mamad_to_tenants: float
    returned_paledelet_to_tenants: float
    mamad_size: Optional[float] = None
    mamad_excess_per_unit: float = 0
    mamad_excess_deduction: float = 0
    mamad_cap_warning: bool = False
    developer_primary: float
    developer_mamad: float
    developer_service: float
    developer_paledelet: float
    total_primary_project: float
    total_service_project: float
    total_paledelet: float
    units_per_dunam: float

    inclusive_housing: InclusiveHousing
    inclusive_housing_area: float = 0


class TrackComparison(_Record):
    area_difference: float
    units_difference: int


class TrackBResult(TrackAResult):
    """Shaked alternative (תיקון 139): Track A recomputed on a higher ceiling."""
    baseline_total_primary_area: float
    existing_gross_area: float
    shaked_multiplier: float
    shaked_ceiling: int
    betterment_levy_rate: float
    estimated_value_per_sqm: Optional[float] = None
    betterment_levy_base: float
    betterment_levy_amount: Optional[int] = None
    comparison_vs_tama: TrackComparison


class TrackCResult(_Record):
    """HFP/2666 district-plan entitlement. Absent figures are ``None``."""
    district_id: Optional[int] = None
    district_name: Optional[str] = None
    sub_area_id: Optional[str] = None
    sub_area_name: Optional[str] = None
    district_data_available: bool = False
    manual_selection_required: bool = False
    is_strengthening_only: bool = False
    small_building_override: bool = False
    is_building_h: bool = False

    plot_area: float
    total_existing_units: int
    total_rights_holders: int

    multiplier: Optional[float] = None
    effective_multiplier: Optional[float] = None
    effective_max_floors: Optional[int] = None
    effective_density: Optional[float] = None
    existing_gross_area: Optional[float] = None
    raw_primary_area: Optional[int] = None
    max_by_floors: Optional[int] = None
    max_by_density: Optional[float] = None
    final_primary_area: Optional[float] = None
    total_primary_area: Optional[float] = None
    strengthen_addition: Optional[float] = None

    # Units
    avg_apartment_size: float
    area_based_units_low: Optional[int] = None
    area_based_units_high: Optional[int] = None
    density_based_units: Optional[int] = None
    potential_units_low: Optional[int] = None
    potential_units_high: Optional[int] = None
    existing_units_to_return: int
    developer_units_low: Optional[int] = None
    developer_units_high: Optional[int] = None

    # Service areas
    number_of_floors: Optional[int] = None
    max_units_per_floor: Optional[int] = None
    mamad_per_unit: float = rules.MAMAD_PER_UNIT
    total_mamad: Optional[float] = None
    balcony_per_unit: float = rules.HFP_BALCONY_PER_UNIT
    total_balcony: Optional[float] = None

    # Split: tenant returns are always computed
    returned_primary_to_tenants: int
    returned_mamad_to_tenants: float
    returned_paledelet_to_tenants: float
    mamad_size: Optional[float] = None
    mamad_excess_per_unit: Optional[float] = None
    mamad_excess_deduction: Optional[float] = None
    mamad_cap_warning: bool = False
    developer_primary: Optional[float] = None
    developer_mamad: Optional[float] = None
    developer_service: Optional[float] = None
    developer_paledelet: Optional[float] = None
    total_primary_project: Optional[float] = None
    total_service_project: Optional[float] = None
    total_paledelet: Optional[float] = None
    units_per_dunam: Optional[float] = None

    inclusive_housing: Optional[InclusiveHousing] = None
    inclusive_housing_area: Optional[float] = None


# ──────────────────────────────────────────────────────────────────
# COMBINED REPORT
# ──────────────────────────────────────────────────────────────────

class TrackSummary(_Record):
    track: str
    label: str
    total_primary_area: Optional[float] = None
    potential_units_low: Optional[int] = None
    potential_units_high: Optional[int] = None
    developer_primary: Optional[float] = None
    developer_units_high: Optional[int] = None
    marketable_units: Optional[int] = None


class TrackComparisonSummary(_Record):
    rows: list[TrackSummary] = []
    best_track: Optional[str] = None


class EfesReport(_Record):
    parcel: ParcelContext
    building: BuildingInput
    filter_result: FilterResult
    tama38: Optional[TrackAResult] = None
    shaked: Optional[TrackBResult] = None
    hfp2666: Optional[TrackCResult] = None
    comparison: TrackComparisonSummary = Field(default_factory=TrackComparisonSummary)


# ──────────────────────────────────────────────────────────────────
# API
# ──────────────────────────────────────────────────────────────────

class CalculationRequest(BaseModel):
    parcel: ParcelContext
    building: BuildingInput
    manual_district_id: Optional[int] = None
    manual_sub_area_id: Optional[str] = None
    estimated_land_value: Optional[float] = None


class SubAreaInfo(BaseModel):
    id: str
    name: str
    multiplier: float
    max_floors: int
    max_density: float
    commercial_bonus: Optional[float] = None
    condition: Optional[str] = None
    is_default: bool = False
    manual_only: bool = False


class DistrictInfo(BaseModel):
    id: int
    name: str
    small_building_override_exempt: bool = False
    sub_areas: list[SubAreaInfo] = []


class DistrictsResponse(BaseModel):
    districts: list[DistrictInfo]
    tama38_expiry_date: str
    licensing_tracks: dict
    rule_constants: dict = {}
