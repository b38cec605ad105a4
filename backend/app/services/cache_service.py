"""
Redis caching service for event listings.

CACHING STRATEGY
================

What we cache:
  - Event listing pages (JSON-serialized EventListResponse payloads)
  - Key pattern: "events:list:page={page}&size={size}&upcoming={upcoming}&category={category}"

Invalidation:
  - Every booking and cancellation changes available_tickets, and every admin
    create/update/delete changes the listing, so all of them drop every
    "events:list:*" key (SCAN + DELETE)
  - TTL-based expiry as a safety net

Single events are never cached: the detail view and the booking flow must
see the live ticket count.

Redis is optional. If it is disabled or unreachable every call degrades to
a miss / no-op and the database answers.
"""

import json
from typing import Optional

import redis.asyncio as redis

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

EVENT_LIST_PREFIX = "events:list:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create the Redis connection. Returns None if Redis is disabled or down."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
        try:
            await client.ping()
        except redis.RedisError as e:
            logger.error("redis_connection_failed", error=str(e))
            await client.aclose()
            return None
        _redis_client = client
        logger.info("redis_connected", url=settings.REDIS_URL)

    return _redis_client


async def close_redis() -> None:
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def make_event_list_key(
    page: int,
    page_size: int,
    upcoming_only: bool,
    category: Optional[str] = None,
) -> str:
    return (
        f"{EVENT_LIST_PREFIX}page={page}&size={page_size}"
        f"&upcoming={upcoming_only}&category={category or 'all'}"
    )


async def get_cached_events(key: str) -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    try:
        data = await client.get(key)
    except redis.RedisError as e:
        logger.error("cache_get_error", key=key, error=str(e))
        record_cache_operation("get", "error")
        return None

    if data:
        logger.debug("cache_hit", key=key)
        record_cache_operation("get", "hit")
        return json.loads(data)
    logger.debug("cache_miss", key=key)
    record_cache_operation("get", "miss")
    return None


async def set_cached_events(key: str, data: dict) -> None:
    client = await get_redis()
    if not client:
        return

    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        record_cache_operation("set", "ok")
    except redis.RedisError as e:
        logger.error("cache_set_error", key=key, error=str(e))
        record_cache_operation("set", "error")


async def invalidate_event_cache() -> None:
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{EVENT_LIST_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
        record_cache_operation("invalidate", "ok")
    except redis.RedisError as e:
        logger.error("cache_invalidation_error", error=str(e))
        record_cache_operation("invalidate", "error")


async def get_cache_stats() -> dict:
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
    except redis.RedisError as e:
        return {"status": "error", "error": str(e)}

    hits = info.get("keyspace_hits", 0)
    misses = info.get("keyspace_misses", 0)
    return {
        "status": "connected",
        "hits": hits,
        "misses": misses,
        "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
    }
