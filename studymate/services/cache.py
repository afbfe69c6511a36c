"""
Redis caching for remote inference results, with an in-process fallback
"""
import json
import os
import redis
from typing import Optional, Any
import structlog

logger = structlog.get_logger()

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")


class CacheService:
    def __init__(self, redis_url: str = REDIS_URL):
        self._memory_cache = {}
        try:
            self.redis_client = redis.from_url(redis_url, decode_responses=True, socket_connect_timeout=1)
            self.redis_client.ping()
            logger.info("cache_connected", backend="redis")
        except (redis.RedisError, ValueError) as e:
            logger.warning("cache_redis_unavailable", backend="memory", error=str(e))
            self.redis_client = None

    @property
    def backend(self) -> str:
        return "redis" if self.redis_client else "memory"

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        try:
            if self.redis_client:
                value = self.redis_client.get(key)
                return json.loads(value) if value else None
            return self._memory_cache.get(key)
        except (redis.RedisError, ValueError) as e:
            logger.error("cache_get_failed", key=key, error=str(e))
            return None

    def set(self, key: str, value: Any, expire: int = 3600) -> bool:
        """Set value in cache with expiration"""
        try:
            if self.redis_client:
                return bool(self.redis_client.setex(key, expire, json.dumps(value)))
            self._memory_cache[key] = value
            return True
        except (redis.RedisError, TypeError) as e:
            logger.error("cache_set_failed", key=key, error=str(e))
            return False

    def delete(self, key: str) -> bool:
        """Delete value from cache"""
        try:
            if self.redis_client:
                return bool(self.redis_client.delete(key))
            return self._memory_cache.pop(key, None) is not None
        except redis.RedisError as e:
            logger.error("cache_delete_failed", key=key, error=str(e))
            return False

    def clear_pattern(self, pattern: str) -> int:
        """Clear all keys matching pattern"""
        try:
            if self.redis_client:
                keys = self.redis_client.keys(pattern)
                return self.redis_client.delete(*keys) if keys else 0
            # prefix match is enough for the "name:*" patterns used here
            prefix = pattern.replace("*", "")
            keys_to_delete = [k for k in self._memory_cache if k.startswith(prefix)]
            for key in keys_to_delete:
                del self._memory_cache[key]
            return len(keys_to_delete)
        except redis.RedisError as e:
            logger.error("cache_clear_failed", pattern=pattern, error=str(e))
            return 0


# Global cache instance
cache = CacheService()
