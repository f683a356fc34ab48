"""
Parcel enrichment client.

The geodata collaborator resolves a point (and optional gush/helka) against
the municipal GIS layers: neighborhood, quarter, sub-quarter, zoning, nearest
street and the conservation / preservation / archaeology / UNESCO flags.

    GET {enrich_service_url}?lng=34.99&lat=32.79&gush=10769&helka=15

Every field in the response is nullable; missing keys are tolerated.
"""

from __future__ import annotations

import math

import httpx

from efes.config import settings
from efes.models.schemas import ParcelContext
from efes.services.cache import get_cached_enrichment, set_cached_enrichment


async def fetch_enrichment(
    lng: float,
    lat: float,
    gush: int | None = None,
    helka: int | None = None,
) -> dict:
    """Fetch the raw enrichment record for a point, through the cache."""
    if not (math.isfinite(lng) and math.isfinite(lat)):
        raise ValueError(f"Invalid coordinates: lng={lng}, lat={lat}")

    cached = await get_cached_enrichment(lng, lat, gush, helka)
    if cached is not None:
        return cached

    params: dict = {"lng": lng, "lat": lat}
    if gush is not None:
        params["gush"] = gush
    if helka is not None:
        params["helka"] = helka

    async with httpx.AsyncClient(timeout=settings.enrich_timeout_seconds) as client:
        resp = await client.get(settings.enrich_service_url, params=params)
        resp.raise_for_status()
        record = resp.json()

    await set_cached_enrichment(lng, lat, gush, helka, record)
    return record


async def fetch_parcel_context(
    lng: float,
    lat: float,
    gush: int | None = None,
    helka: int | None = None,
    plot_area: float = 0,
) -> ParcelContext:
    """Resolve a parcel's attributes from the geodata collaborator."""
    record = await fetch_enrichment(lng, lat, gush, helka)
    return _parse_enrich_record(record, gush=gush, helka=helka, plot_area=plot_area)


def _parse_enrich_record(
    record: dict,
    gush: int | None = None,
    helka: int | None = None,
    plot_area: float = 0,
) -> ParcelContext:
    """Parse a raw enrichment record into our schema."""
    def _str(val):
        if val is None:
            return None
        val = str(val).strip()
        return val or None

    def _bool(val):
        return bool(val) if val is not None else False

    return ParcelContext(
        gush=gush,
        helka=helka,
        plot_area=plot_area or 0,
        neighborhood=_str(record.get("neighborhood")),
        quarter=_str(record.get("quarter")),
        sub_quarter=_str(record.get("subQuarter")),
        zoning_type=_str(record.get("zoningType")),
        street_name=_str(record.get("streetName")),
        is_conservation_building=_bool(record.get("isConservationBuilding")),
        is_in_preservation_area=_bool(record.get("isInPreservationArea")),
        is_archaeological_site=_bool(record.get("isArchaeologicalSite")),
        is_unesco_core=_bool(record.get("isUnescoCore")),
        is_unesco_buffer=_bool(record.get("isUnescoBuffer")),
    )
