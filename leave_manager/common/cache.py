"""Best-effort key/value cache in front of the database.

Every operation swallows backend failures: a cache outage degrades to direct
database reads and never fails the request.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Protocol

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class Cache(Protocol):
    async def get(self, key: str) -> Optional[Any]: ...

    async def set(
        self, key: str, value: Any, ttl: int, *, only_if_absent: bool = False,
    ) -> bool: ...

    async def delete(self, *keys: str) -> bool: ...


class RedisCache:
    """JSON-encoding cache backed by Redis."""

    def __init__(self, client: Redis) -> None:
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCache":
        return cls(Redis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self.client.get(key)
        except (RedisError, OSError) as exc:
            logger.warning("Cache get failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as exc:
            logger.warning("Discarding undecodable cache entry %s: %s", key, exc)
            return None

    async def set(
        self, key: str, value: Any, ttl: int, *, only_if_absent: bool = False,
    ) -> bool:
        """Store ``value`` for ``ttl`` seconds. With ``only_if_absent`` an
        existing entry wins (SET NX) and False is returned."""
        try:
            stored = await self.client.set(key, json.dumps(value), ex=ttl, nx=only_if_absent)
        except (RedisError, OSError, TypeError, ValueError) as exc:
            logger.warning("Cache set failed for %s: %s", key, exc)
            return False
        return bool(stored)

    async def delete(self, *keys: str) -> bool:
        if not keys:
            return True
        try:
            await self.client.delete(*keys)
        except (RedisError, OSError) as exc:
            logger.warning("Cache delete failed for %s: %s", ", ".join(keys), exc)
            return False
        return True

    async def close(self) -> None:
        try:
            await self.client.aclose()
        except (RedisError, OSError) as exc:
            logger.warning("Error closing cache connection: %s", exc)


class NullCache:
    """Always misses. Used when caching is disabled."""

    async def get(self, key: str) -> Optional[Any]:
        return None

    async def set(
        self, key: str, value: Any, ttl: int, *, only_if_absent: bool = False,
    ) -> bool:
        return False

    async def delete(self, *keys: str) -> bool:
        return True

    async def close(self) -> None:
        return None
