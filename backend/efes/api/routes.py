from __future__ import annotations

import httpx
from fastapi import APIRouter, HTTPException, Query

from efes.models.schemas import (
    CalculationRequest, DistrictInfo, DistrictsResponse, EfesReport,
    ParcelContext, SubAreaInfo,
)
from efes.rights_engine.calculator import RightsCalculator
from efes.rights_engine.districts import is_manual_only
from efes.rights_engine.rules import (
    HFP2666_DISTRICTS, LICENSING_TRACKS, MAMAD_MAX_NET_SIZE, MIN_APARTMENT_SIZE,
    SHAKED_MAX_DEMOLISH_REBUILD, SHAKED_MAX_STRENGTHEN, SMALL_BUILDING_EXEMPT_DISTRICTS,
    TAMA38_EXPIRY_DATE, condition_kind,
)
from efes.services.enrichment import fetch_parcel_context

router = APIRouter(prefix="/api")
calculator = RightsCalculator()


@router.get("/enrich", response_model=ParcelContext)
async def enrich_parcel(
    lng: float = Query(..., description="Longitude (WGS84)"),
    lat: float = Query(..., description="Latitude (WGS84)"),
    gush: int | None = Query(None, description="Cadastral block"),
    helka: int | None = Query(None, description="Cadastral plot"),
    plot_area: float = Query(0, ge=0, description="Registered plot area, m²"),
):
    """Resolve a parcel's neighborhood, street and protection flags."""
    try:
        return await fetch_parcel_context(lng, lat, gush, helka, plot_area)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except httpx.HTTPError as e:
        raise HTTPException(status_code=502, detail=f"Enrichment service error: {e}")


@router.post("/calculate", response_model=EfesReport)
async def calculate_rights(request: CalculationRequest):
    """Run the filter pipeline and every eligible entitlement track."""
    try:
        return calculator.calculate(
            request.parcel,
            request.building,
            manual_district_id=request.manual_district_id,
            manual_sub_area_id=request.manual_sub_area_id,
            estimated_land_value=request.estimated_land_value,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/districts", response_model=DistrictsResponse)
async def list_districts():
    """HFP/2666 districts and sub-areas, for manual selection."""
    districts = [
        DistrictInfo(
            id=district.id,
            name=district.name,
            small_building_override_exempt=district.id in SMALL_BUILDING_EXEMPT_DISTRICTS,
            sub_areas=[
                SubAreaInfo(
                    id=sub_area.id,
                    name=sub_area.name,
                    multiplier=sub_area.multiplier,
                    max_floors=sub_area.max_floors,
                    max_density=sub_area.max_density,
                    commercial_bonus=sub_area.commercial_bonus,
                    condition=condition_kind(sub_area.condition) if sub_area.condition else None,
                    is_default=sub_area.is_default,
                    manual_only=is_manual_only(sub_area.condition),
                )
                for sub_area in district.sub_areas
            ],
        )
        for district in HFP2666_DISTRICTS
    ]
    return DistrictsResponse(
        districts=districts,
        tama38_expiry_date=TAMA38_EXPIRY_DATE,
        licensing_tracks=LICENSING_TRACKS,
        rule_constants={
            "min_apartment_size": MIN_APARTMENT_SIZE,
            "mamad_max_net_size": MAMAD_MAX_NET_SIZE,
            "shaked_max_demolish_rebuild": SHAKED_MAX_DEMOLISH_REBUILD,
            "shaked_max_strengthen": SHAKED_MAX_STRENGTHEN,
        },
    )
