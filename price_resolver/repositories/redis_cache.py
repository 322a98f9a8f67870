import redis.asyncio as redis
from typing import Optional
import structlog
import json
from .base import CacheRepository


logger = structlog.get_logger()


class RedisCacheRepository(CacheRepository):
    """Redis implementation of cache repository."""

    def __init__(self, redis_url: str, db: int = 0, key_prefix: str = "iaero:prices"):
        self.redis_url = redis_url
        self.db = db
        self.key_prefix = key_prefix
        self.client: Optional[redis.Redis] = None

    async def connect(self) -> None:
        """Connect to Redis."""
        try:
            self.client = redis.from_url(
                self.redis_url,
                db=self.db,
                decode_responses=True,
                socket_timeout=5,
                socket_connect_timeout=5
            )

            await self.client.ping()

            logger.info("Connected to Redis", url=self.redis_url, db=self.db)
        except Exception as e:
            logger.error("Failed to connect to Redis", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self.client:
            await self.client.aclose()
            logger.info("Disconnected from Redis")

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            if not self.client:
                return False
            await self.client.ping()
            return True
        except Exception as e:
            logger.error("Redis health check failed", error=str(e))
            return False

    def _make_key(self, key: str) -> str:
        """Create prefixed key."""
        return f"{self.key_prefix}:{key}"

    async def get_json(self, key: str) -> Optional[dict]:
        """Get JSON value from cache."""
        value = await self.client.get(self._make_key(key))
        logger.debug("Got cache value", key=key, found=value is not None)
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            logger.error("Failed to decode JSON from cache", key=key, error=str(e))
            return None

    async def set_json(self, key: str, value: dict, ttl: Optional[int] = None) -> None:
        """Set JSON value in cache."""
        full_key = self._make_key(key)
        payload = json.dumps(value)
        if ttl:
            await self.client.setex(full_key, ttl, payload)
        else:
            await self.client.set(full_key, payload)
        logger.debug("Set cache value", key=key, ttl=ttl)

    async def delete(self, key: str) -> None:
        """Delete cache value."""
        await self.client.delete(self._make_key(key))
        logger.debug("Deleted cache value", key=key)
