"""
Redis caching layer for the Efes rights engine.

Only collaborator responses are cached; calculations are cheap and always
recomputed.

TTLs:
  - Parcel enrichment by coordinates (+ gush/helka): 24 hours
"""

from __future__ import annotations

import json
import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from efes.config import settings

logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None

TTL_ENRICH = 86400      # 24 hours


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis client. Returns None if Redis is not configured or down."""
    global _redis_client
    if _redis_client is not None:
        return _redis_client

    redis_url = settings.redis_url
    if not redis_url:
        return None

    try:
        _redis_client = redis.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=3,
            socket_timeout=3,
        )
        await _redis_client.ping()
        return _redis_client
    except (RedisError, ValueError) as exc:
        logger.warning("Redis unavailable at %s: %s", redis_url, exc)
        _redis_client = None
        return None


def _make_key(prefix: str, identifier: str) -> str:
    """Build a cache key."""
    return f"efes:{prefix}:{identifier}"


def enrich_cache_key(lng: float, lat: float, gush: int | None, helka: int | None) -> str:
    return f"{lng:.6f},{lat:.6f}:{gush or ''}/{helka or ''}"


async def cache_get(prefix: str, identifier: str) -> Optional[dict]:
    """Get a cached value. Returns None on miss or Redis unavailable."""
    r = await get_redis()
    if not r:
        return None
    try:
        val = await r.get(_make_key(prefix, identifier))
        if val:
            return json.loads(val)
    except (RedisError, ValueError) as exc:
        logger.warning("Cache read failed for %s:%s: %s", prefix, identifier, exc)
    return None


async def cache_set(prefix: str, identifier: str, data: dict, ttl: int = TTL_ENRICH) -> bool:
    """Set a cached value. Returns True on success."""
    r = await get_redis()
    if not r:
        return False
    try:
        await r.setex(_make_key(prefix, identifier), ttl, json.dumps(data, default=str))
        return True
    except (RedisError, ValueError) as exc:
        logger.warning("Cache write failed for %s:%s: %s", prefix, identifier, exc)
        return False


# ──────────────────────────────────────────────────────────────────
# CONVENIENCE FUNCTIONS
# ──────────────────────────────────────────────────────────────────

async def get_cached_enrichment(
    lng: float, lat: float, gush: int | None = None, helka: int | None = None,
) -> Optional[dict]:
    return await cache_get("enrich", enrich_cache_key(lng, lat, gush, helka))


async def set_cached_enrichment(
    lng: float, lat: float, gush: int | None, helka: int | None, data: dict,
):
    await cache_set("enrich", enrich_cache_key(lng, lat, gush, helka), data, TTL_ENRICH)
