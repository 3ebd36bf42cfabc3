import redis.asyncio as redis
from .config import settings
import json
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


class RedisClient:
    """
    Cache for catalog stream sources (content:stream:{id} keys).

    Values are JSON documents. A cache outage must never fail a heartbeat,
    so every operation logs the error and returns the miss/failure value;
    the caller then falls back to the database.
    """

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.REDIS_URL
        self.redis: Optional[redis.Redis] = None
        self.pool: Optional[redis.ConnectionPool] = None

    async def connect(self):
        if self.redis:
            logger.warning("⚠️ Redis already connected")
            return

        try:
            self.pool = redis.ConnectionPool.from_url(
                self.url,
                decode_responses=True,
                max_connections=20,
                socket_connect_timeout=2,
                socket_timeout=2,
                health_check_interval=30,
            )
            self.redis = redis.Redis(connection_pool=self.pool)
            await self.redis.ping()
            logger.info(f"✅ Catalog cache connected ({self.url})")

        except Exception as e:
            logger.error(f"❌ Catalog cache connection failed: {e}")
            self.redis = None
            self.pool = None
            raise

    async def disconnect(self):
        try:
            if self.redis:
                await self.redis.aclose()
            if self.pool:
                await self.pool.disconnect()
            logger.info("✅ Catalog cache closed")
        except Exception as e:
            logger.error(f"❌ Catalog cache disconnect error: {e}")
        finally:
            self.redis = None
            self.pool = None

    async def _ensure_connected(self):
        # lazily reconnect after an outage or when startup skipped Redis
        if not self.redis:
            await self.connect()

    async def ping(self) -> bool:
        """Used by /health/detailed"""
        try:
            await self._ensure_connected()
            return await self.redis.ping()
        except Exception as e:
            logger.error(f"❌ Catalog cache ping failed: {e}")
            return False

    async def get(self, key: str) -> Optional[Any]:
        """Cached stream source for key, or None on a miss or any cache error"""
        try:
            await self._ensure_connected()
            value = await self.redis.get(key)
            return json.loads(value) if value else None

        except Exception as e:
            logger.error(f"❌ Catalog cache GET failed for '{key}': {e}")
            return None

    async def set(self, key: str, value: Any, expire: Optional[int] = None) -> bool:
        """
        Store a stream source as JSON.

        Args:
            key: cache key, content:stream:{id}
            value: JSON-serializable stream source
            expire: TTL in seconds, CONTENT_CACHE_EXPIRATION when omitted;
                    bounds how stale a cached URL or duration can get
        """
        try:
            await self._ensure_connected()
            ttl = settings.CONTENT_CACHE_EXPIRATION if expire is None else expire
            return bool(await self.redis.setex(key, ttl, json.dumps(value)))

        except Exception as e:
            logger.error(f"❌ Catalog cache SET failed for '{key}': {e}")
            return False

    async def delete(self, key: str) -> bool:
        """True if a cached entry was removed"""
        try:
            await self._ensure_connected()
            return bool(await self.redis.delete(key))

        except Exception as e:
            logger.error(f"❌ Catalog cache DELETE failed for '{key}': {e}")
            return False


# Catalog cache used by services.catalog
redis_client = RedisClient()
