"""
Redis-backed TTL cache for duplicate-detection results.

Keys are namespaced so every cached detection can be dropped at once when
student records change. Values are stored as JSON with SETEX, so entries
expire on the Redis side and every worker sees the same invalidations.
"""

import json
import logging
import math
import re
from typing import Any, Optional

import redis.asyncio as redis

logger = logging.getLogger(__name__)

DUPLICATE_NAMESPACE = "duplicate"

_GLOB_SPECIAL = re.compile(r"([\\*?\[\]])")


class DetectionCache:
    """Expiring JSON key/value store over an async Redis client."""

    SCAN_BATCH_SIZE = 100

    def __init__(self, redis_client: redis.Redis, default_ttl_seconds: int = 120):
        """
        Initialize the cache.

        Args:
            redis_client: Async Redis client (decode_responses may be on or off)
            default_ttl_seconds: Lifetime of entries stored without a TTL
        """
        if default_ttl_seconds <= 0:
            raise ValueError("default_ttl_seconds must be positive")
        self._redis = redis_client
        self.default_ttl_seconds = default_ttl_seconds

    @staticmethod
    def build_key(namespace: str, *parts: Any) -> str:
        """Build a deterministic key from JSON-serializable parts."""
        return f"{namespace}:{json.dumps(parts, sort_keys=True, default=str)}"

    async def get(self, key: str) -> Optional[Any]:
        """Get a cached value, or None if missing or expired."""
        raw = await self._redis.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl_seconds
        if ttl <= 0:
            raise ValueError("ttl_seconds must be positive")
        # SETEX takes whole seconds
        await self._redis.setex(key, math.ceil(ttl), json.dumps(value, default=str))

    async def invalidate(self, key: str) -> None:
        await self._redis.delete(key)

    async def invalidate_prefix(self, prefix: str) -> int:
        """Drop every key starting with prefix. Returns the number dropped."""
        # SCAN MATCH is a glob; keys built from JSON can contain [ ] * ?
        pattern = _GLOB_SPECIAL.sub(r"\\\1", prefix) + "*"
        removed = 0
        cursor = 0
        while True:
            cursor, keys = await self._redis.scan(
                cursor, match=pattern, count=self.SCAN_BATCH_SIZE
            )
            if keys:
                removed += await self._redis.delete(*keys)
            if cursor == 0:
                break

        if removed:
            logger.debug(f"Invalidated {removed} cache entries under '{prefix}'")
        return removed

    async def clear(self) -> int:
        """Drop every cached duplicate-detection result."""
        return await self.invalidate_prefix(f"{DUPLICATE_NAMESPACE}:")
