"""Tests for the parcel enrichment client."""

import math

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from efes.services.cache import cache_get, enrich_cache_key, get_redis
from efes.services.enrichment import _parse_enrich_record, fetch_parcel_context


# ──────────────────────────────────────────────────────────────
# FIXTURES
# ──────────────────────────────────────────────────────────────

HAIFA_LNG = 34.9896
HAIFA_LAT = 32.7940

SAMPLE_RECORD = {
    "neighborhood": "הדר הכרמל",
    "rovaCode": 3,
    "quarter": "הדר ",
    "subQuarter": None,
    "zoningType": "מגורים ב'",
    "streetName": "הרצל",
    "isConservationBuilding": False,
    "isInPreservationArea": True,
    "isArchaeologicalSite": False,
    "isUnescoCore": False,
    "isUnescoBuffer": False,
}


def _mock_client_class(mock_client_class, mock_client):
    mock_client_class.return_value.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client_class.return_value.__aexit__ = AsyncMock(return_value=False)


# ──────────────────────────────────────────────────────────────
# PARSING
# ──────────────────────────────────────────────────────────────

class TestParseEnrichRecord:
    def test_full_record(self):
        parcel = _parse_enrich_record(SAMPLE_RECORD, gush=10870, helka=7, plot_area=750)
        assert parcel.gush == 10870
        assert parcel.helka == 7
        assert parcel.plot_area == 750
        assert parcel.neighborhood == "הדר הכרמל"
        assert parcel.quarter == "הדר"
        assert parcel.sub_quarter is None
        assert parcel.street_name == "הרצל"
        assert parcel.is_in_preservation_area is True
        assert parcel.is_conservation_building is False

    def test_empty_record(self):
        parcel = _parse_enrich_record({})
        assert parcel.neighborhood is None
        assert parcel.plot_area == 0
        assert parcel.is_unesco_core is False

    def test_blank_strings_become_none(self):
        parcel = _parse_enrich_record({"neighborhood": "  ", "streetName": ""})
        assert parcel.neighborhood is None
        assert parcel.street_name is None

    def test_null_flags(self):
        parcel = _parse_enrich_record({"isConservationBuilding": None, "isUnescoCore": True})
        assert parcel.is_conservation_building is False
        assert parcel.is_unesco_core is True


class TestCacheKey:
    def test_includes_parcel_ids(self):
        assert enrich_cache_key(34.98, 32.79, 10870, 7) != enrich_cache_key(34.98, 32.79, None, None)

    def test_rounds_coordinates(self):
        assert enrich_cache_key(34.98000001, 32.79, None, None) == enrich_cache_key(34.98, 32.79, None, None)


# ──────────────────────────────────────────────────────────────
# ASYNC FETCH (mocked)
# ──────────────────────────────────────────────────────────────

class TestFetchParcelContext:
    @pytest.mark.asyncio
    async def test_fetches_and_caches(self):
        with patch("efes.services.enrichment.httpx.AsyncClient") as mock_client_class, \
                patch("efes.services.enrichment.get_cached_enrichment", AsyncMock(return_value=None)), \
                patch("efes.services.enrichment.set_cached_enrichment", AsyncMock()) as mock_set:
            mock_resp = MagicMock()
            mock_resp.json.return_value = SAMPLE_RECORD

            mock_client = AsyncMock()
            mock_client.get.return_value = mock_resp
            _mock_client_class(mock_client_class, mock_client)

            parcel = await fetch_parcel_context(HAIFA_LNG, HAIFA_LAT, 10870, 7, plot_area=750)

            assert parcel.neighborhood == "הדר הכרמל"
            assert parcel.plot_area == 750
            params = mock_client.get.call_args.kwargs["params"]
            assert params == {"lng": HAIFA_LNG, "lat": HAIFA_LAT, "gush": 10870, "helka": 7}
            mock_set.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_omits_missing_parcel_ids(self):
        with patch("efes.services.enrichment.httpx.AsyncClient") as mock_client_class, \
                patch("efes.services.enrichment.get_cached_enrichment", AsyncMock(return_value=None)), \
                patch("efes.services.enrichment.set_cached_enrichment", AsyncMock()):
            mock_resp = MagicMock()
            mock_resp.json.return_value = {}

            mock_client = AsyncMock()
            mock_client.get.return_value = mock_resp
            _mock_client_class(mock_client_class, mock_client)

            await fetch_parcel_context(HAIFA_LNG, HAIFA_LAT)

            assert mock_client.get.call_args.kwargs["params"] == {"lng": HAIFA_LNG, "lat": HAIFA_LAT}

    @pytest.mark.asyncio
    async def test_cache_hit_skips_upstream(self):
        with patch("efes.services.enrichment.httpx.AsyncClient") as mock_client_class, \
                patch("efes.services.enrichment.get_cached_enrichment",
                      AsyncMock(return_value=SAMPLE_RECORD)):
            parcel = await fetch_parcel_context(HAIFA_LNG, HAIFA_LAT, 10870, 7)

            assert parcel.street_name == "הרצל"
            mock_client_class.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("lng, lat", [(math.nan, 32.79), (34.98, math.inf)])
    async def test_rejects_non_finite_coordinates(self, lng, lat):
        with pytest.raises(ValueError):
            await fetch_parcel_context(lng, lat)

    @pytest.mark.asyncio
    async def test_upstream_error_propagates(self):
        with patch("efes.services.enrichment.httpx.AsyncClient") as mock_client_class, \
                patch("efes.services.enrichment.get_cached_enrichment", AsyncMock(return_value=None)):
            mock_client = AsyncMock()
            mock_client.get.side_effect = httpx.ConnectError("connection refused")
            _mock_client_class(mock_client_class, mock_client)

            with pytest.raises(httpx.HTTPError):
                await fetch_parcel_context(HAIFA_LNG, HAIFA_LAT)


# ──────────────────────────────────────────────────────────────
# CACHE CONNECTION
# ──────────────────────────────────────────────────────────────

class TestGetRedis:
    @pytest.mark.asyncio
    async def test_not_configured(self):
        with patch("efes.services.cache._redis_client", None), \
                patch("efes.services.cache.settings") as mock_settings:
            mock_settings.redis_url = ""
            assert await get_redis() is None

    @pytest.mark.asyncio
    async def test_malformed_url_degrades_to_miss(self):
        with patch("efes.services.cache._redis_client", None), \
                patch("efes.services.cache.settings") as mock_settings, \
                patch("efes.services.cache.redis.from_url",
                      side_effect=ValueError("Redis URL must specify a scheme")):
            mock_settings.redis_url = "localhost:6379"
            assert await get_redis() is None
            assert await cache_get("enrich", "34.98,32.79") is None

    @pytest.mark.asyncio
    async def test_malformed_url_does_not_break_enrichment(self):
        with patch("efes.services.cache._redis_client", None), \
                patch("efes.services.cache.settings") as mock_settings, \
                patch("efes.services.cache.redis.from_url",
                      side_effect=ValueError("Redis URL must specify a scheme")), \
                patch("efes.services.enrichment.httpx.AsyncClient") as mock_client_class:
            mock_settings.redis_url = "localhost:6379"
            mock_resp = MagicMock()
            mock_resp.json.return_value = SAMPLE_RECORD

            mock_client = AsyncMock()
            mock_client.get.return_value = mock_resp
            _mock_client_class(mock_client_class, mock_client)

            parcel = await fetch_parcel_context(HAIFA_LNG, HAIFA_LAT)
            assert parcel.neighborhood == "הדר הכרמל"
