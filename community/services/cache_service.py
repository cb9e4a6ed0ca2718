"""Redis cache for tenant-scoped lookups."""
import json
import logging
from typing import Any, Optional

import redis


logger = logging.getLogger(__name__)


class CacheService:
    """
    JSON values in Redis under a common key prefix.

    When Redis cannot be reached the service stays usable: reads miss and
    writes are dropped, so callers always fall back to the database.
    """

    def __init__(self, redis_url: str, prefix: str = 'community'):
        self.prefix = prefix
        try:
            self.redis_client = redis.from_url(redis_url, decode_responses=True)
            self.redis_client.ping()
            logger.info("Redis cache connected")
        except redis.RedisError as e:
            logger.warning(f"Redis unavailable ({e}), tenant settings will not be cached")
            self.redis_client = None

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    @property
    def available(self) -> bool:
        return self.redis_client is not None

    def get(self, key: str) -> Optional[Any]:
        """Cached value for ``key`` or ``None`` on a miss."""
        if not self.available:
            return None

        try:
            raw = self.redis_client.get(self._key(key))
        except redis.RedisError as e:
            logger.error(f"Cache read failed for {key}: {e}")
            return None

        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Dropping unreadable cache entry {key}")
            self.delete(key)
            return None

    def set(self, key: str, value: Any, ttl: int = 300) -> None:
        """Store ``value`` for ``ttl`` seconds."""
        if not self.available:
            return

        try:
            self.redis_client.setex(self._key(key), ttl, json.dumps(value))
        except (redis.RedisError, TypeError) as e:
            logger.error(f"Cache write failed for {key}: {e}")

    def delete(self, key: str) -> None:
        if not self.available:
            return

        try:
            self.redis_client.delete(self._key(key))
        except redis.RedisError as e:
            logger.error(f"Cache invalidation failed for {key}: {e}")
