"""Redis cache service for routing matrices and reverse-geocode labels."""

import hashlib
import json
import logging
from typing import Any

import redis.asyncio as redis

from meetpoint.config import settings

logger = logging.getLogger(__name__)

# TTLs in seconds
TTL_ROUTE_MATRIX = settings.route_cache_ttl_seconds
TTL_AREA_LABEL = 7 * 24 * 60 * 60   # 7 days


class CacheService:
    """Redis-backed cache with typed TTLs. Every failure is a cache miss."""

    def __init__(self, url: str | None = None):
        self._url = url or settings.redis_url
        self._redis: redis.Redis | None = None
        self._unavailable = False

    async def _get_redis(self) -> redis.Redis | None:
        if self._unavailable:
            return None
        if self._redis is None:
            try:
                self._redis = redis.from_url(
                    self._url,
                    encoding="utf-8",
                    decode_responses=True,
                )
                await self._redis.ping()
            except Exception as e:
                logger.warning(f"Redis unavailable, cache disabled: {e}")
                self._redis = None
                self._unavailable = True
                return None
        return self._redis

    async def get(self, key: str) -> Any | None:
        """Get a value from cache. Returns None on miss or error."""
        try:
            r = await self._get_redis()
            if r is None:
                return None
            raw = await r.get(key)
            if raw is None:
                return None
            return json.loads(raw)
        except Exception:
            return None

    async def set(self, key: str, value: Any, ttl: int = TTL_ROUTE_MATRIX) -> bool:
        """Set a value in cache with TTL. Returns False on error."""
        try:
            r = await self._get_redis()
            if r is None:
                return False
            await r.set(key, json.dumps(value, default=str), ex=ttl)
            return True
        except Exception:
            return False

    # Typed helpers

    def matrix_key(self, mode: str, origins: list[str], destinations: list[str]) -> str:
        digest = hashlib.sha1(
            f"{mode}|{';'.join(origins)}|{';'.join(destinations)}".encode("utf-8")
        ).hexdigest()
        return f"matrix:{mode}:{digest}"

    def area_label_key(self, lat: float, lng: float) -> str:
        return f"area:{lat:.4f}:{lng:.4f}"

    async def get_matrix(self, mode: str, origins: list[str], destinations: list[str]) -> list[list[int]] | None:
        return await self.get(self.matrix_key(mode, origins, destinations))

    async def set_matrix(self, mode: str, origins: list[str], destinations: list[str], data: list[list[int]]):
        await self.set(self.matrix_key(mode, origins, destinations), data, TTL_ROUTE_MATRIX)

    async def get_area_label(self, lat: float, lng: float) -> str | None:
        return await self.get(self.area_label_key(lat, lng))

    async def set_area_label(self, lat: float, lng: float, label: str):
        await self.set(self.area_label_key(lat, lng), label, TTL_AREA_LABEL)

    async def close(self):
        if self._redis:
            await self._redis.aclose()
            self._redis = None


cache_service = CacheService()
