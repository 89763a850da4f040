"""
Redis Score Cache
=================

Caching layer for computed compatibility scores.

Features:
    - Async Redis via redis.asyncio
    - Keys per (donor pair, recipient pair)
    - Configurable TTL
    - Graceful fallback when Redis unavailable
    - Invalidation per pair or per donor

Author: OrganSync Team
Version: 1.0.0
"""

import json
import logging
from typing import Any, Dict, Optional
from uuid import UUID

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)


class ScoreCache:
    """
    Redis-backed score cache with graceful fallback.

    When Redis is unavailable, all operations become no-ops
    (cache miss on get, False on set/invalidate).

    Usage:
        cache = ScoreCache(redis_url="redis://localhost:6379")
        await cache.connect()

        cached = await cache.get(donor_pair_id, recipient_pair_id)
        if cached is None:
            ...
            await cache.set(donor_pair_id, recipient_pair_id, payload)
    """

    PREFIX = "organsync:score:"

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        default_ttl: int = 3600,
    ):
        """
        Initialize score cache.

        Args:
            redis_url: Redis connection URL
            default_ttl: Default time-to-live in seconds
        """
        self.redis_url = redis_url
        self.default_ttl = default_ttl
        self._redis: Optional[Any] = None
        self._available = False

    @classmethod
    def key_for(cls, donor_pair_id: UUID, recipient_pair_id: UUID) -> str:
        """Cache key for a donor/recipient pair."""
        return f"{cls.PREFIX}{donor_pair_id}:{recipient_pair_id}"

    async def connect(self) -> bool:
        """
        Connect to Redis.

        Returns:
            True if connected successfully
        """
        try:
            self._redis = aioredis.from_url(
                self.redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            await self._redis.ping()
            self._available = True
            logger.info("Score cache connected to Redis")
            return True
        except Exception as e:
            logger.warning(f"Redis unavailable, score cache disabled: {e}")
            self._available = False
            return False

    async def close(self):
        """Close Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._available = False

    @property
    def is_available(self) -> bool:
        """Whether cache is operational."""
        return self._available

    async def get(
        self,
        donor_pair_id: UUID,
        recipient_pair_id: UUID,
    ) -> Optional[Dict[str, Any]]:
        """
        Get the cached score for a pair.

        Returns:
            Cached payload if found, None otherwise
        """
        if not self._available:
            return None

        key = self.key_for(donor_pair_id, recipient_pair_id)
        try:
            data = await self._redis.get(key)
            if data:
                logger.debug(f"Cache HIT: {key}")
                return json.loads(data)
            logger.debug(f"Cache MISS: {key}")
            return None
        except Exception as e:
            logger.warning(f"Cache get error for {key}: {e}")
            return None

    async def set(
        self,
        donor_pair_id: UUID,
        recipient_pair_id: UUID,
        score_data: Dict[str, Any],
        ttl: Optional[int] = None,
    ) -> bool:
        """
        Cache a score payload.

        Args:
            donor_pair_id: Donor pair identifier
            recipient_pair_id: Recipient pair identifier
            score_data: JSON-compatible payload
            ttl: Time-to-live in seconds (uses default if None)

        Returns:
            True if cached successfully
        """
        if not self._available:
            return False

        key = self.key_for(donor_pair_id, recipient_pair_id)
        try:
            payload = json.dumps(score_data, default=str)
            await self._redis.setex(key, ttl or self.default_ttl, payload)
            logger.debug(f"Cache SET: {key} (ttl={ttl or self.default_ttl}s)")
            return True
        except Exception as e:
            logger.warning(f"Cache set error for {key}: {e}")
            return False

    async def invalidate(self, donor_pair_id: UUID, recipient_pair_id: UUID) -> bool:
        """
        Invalidate the cached score for a pair.

        Returns:
            True if invalidated successfully
        """
        if not self._available:
            return False

        key = self.key_for(donor_pair_id, recipient_pair_id)
        try:
            await self._redis.delete(key)
            logger.debug(f"Cache INVALIDATED: {key}")
            return True
        except Exception as e:
            logger.warning(f"Cache invalidate error: {e}")
            return False

    async def invalidate_donor(self, donor_pair_id: UUID) -> int:
        """
        Invalidate every cached score involving a donor pair.

        Returns:
            Number of keys invalidated
        """
        return await self._delete_matching(f"{self.PREFIX}{donor_pair_id}:*")

    async def invalidate_all(self) -> int:
        """
        Invalidate all cached scores.

        Returns:
            Number of keys invalidated
        """
        return await self._delete_matching(f"{self.PREFIX}*")

    async def _delete_matching(self, pattern: str) -> int:
        if not self._available:
            return 0

        try:
            keys = []
            async for key in self._redis.scan_iter(pattern):
                keys.append(key)
            if keys:
                await self._redis.delete(*keys)
            logger.info(f"Cache FLUSH {pattern}: {len(keys)} keys invalidated")
            return len(keys)
        except Exception as e:
            logger.warning(f"Cache flush error: {e}")
            return 0

    async def stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dict with key count, memory usage and connection info
        """
        if not self._available:
            return {"available": False}

        try:
            info = await self._redis.info()
            key_count = 0
            async for _ in self._redis.scan_iter(f"{self.PREFIX}*"):
                key_count += 1

            return {
                "available": True,
                "cached_scores": key_count,
                "used_memory_human": info.get("used_memory_human", "unknown"),
                "keyspace_hits": info.get("keyspace_hits", 0),
                "keyspace_misses": info.get("keyspace_misses", 0),
            }
        except Exception as e:
            return {"available": False, "error": str(e)}
