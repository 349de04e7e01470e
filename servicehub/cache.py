"""
Key/value store for per-user state (carts)
Uses Redis when configured, otherwise keeps values in process memory
"""
import json
import logging
import time
from threading import Lock
from typing import Any, Optional

from .exceptions import StorageUnavailableError
from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)


class Cache:
    """Redis cache wrapper with automatic serialization and memory fallback"""

    def __init__(self, use_redis: bool = True):
        self.use_redis = use_redis
        self.redis_client = None
        self._memory: dict[str, tuple[float, str]] = {}
        self._lock = Lock()

    def _get_client(self):
        """Lazy load Redis client"""
        if not self.use_redis:
            return None
        if self.redis_client is None:
            try:
                self.redis_client = get_redis_client()
            except Exception as e:
                logger.warning(f"⚠️ Redis cache unavailable, using memory: {e}")
                self.use_redis = False
                return None
        return self.redis_client

    def get(self, key: str, strict: bool = False) -> Optional[Any]:
        """Get value from cache; with strict, a Redis failure raises instead of reading as a miss"""
        client = self._get_client()
        if client:
            try:
                value = client.get(key)
                if value:
                    logger.debug(f"✅ Cache HIT: {key}")
                    return json.loads(value)
                logger.debug(f"❌ Cache MISS: {key}")
                return None
            except Exception as e:
                logger.error(f"❌ Cache get error for {key}: {e}")
                if strict:
                    raise StorageUnavailableError(f"Could not read {key}") from e
                return None

        with self._lock:
            entry = self._memory.get(key)
            if not entry:
                return None
            expires_at, value = entry
            if expires_at < time.time():
                del self._memory[key]
                return None
            return json.loads(value)

    def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        """Set value in cache with TTL (default 1 hour)"""
        serialized = json.dumps(value)
        client = self._get_client()
        if client:
            try:
                client.setex(key, ttl, serialized)
                logger.debug(f"✅ Cache SET: {key} (TTL: {ttl}s)")
                return True
            except Exception as e:
                logger.error(f"❌ Cache set error for {key}: {e}")
                return False

        with self._lock:
            self._memory[key] = (time.time() + ttl, serialized)
        return True

    def delete(self, key: str) -> bool:
        """Delete value from cache"""
        client = self._get_client()
        if client:
            try:
                client.delete(key)
                logger.debug(f"✅ Cache DELETE: {key}")
                return True
            except Exception as e:
                logger.error(f"❌ Cache delete error for {key}: {e}")
                return False

        with self._lock:
            self._memory.pop(key, None)
        return True


# Global cache instance
cache = Cache()


def get_cache_stats() -> dict:
    """Get cache statistics"""
    client = cache._get_client()
    if not client:
        return {"available": False, "backend": "memory", "keys": len(cache._memory)}

    try:
        info = client.info()
        return {
            "available": True,
            "backend": "redis",
            "version": info.get("redis_version", "unknown"),
            "used_memory": info.get("used_memory_human"),
            "connected_clients": info.get("connected_clients"),
        }
    except Exception as e:
        logger.error(f"❌ Failed to get cache stats: {e}")
        return {"available": False, "backend": "redis", "error": str(e)}
