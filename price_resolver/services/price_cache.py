"""Short-lived response cache in front of the resolution pipeline."""

from typing import Dict, Iterable, Optional, Union
import structlog

from ..config.settings import Settings
from ..repositories.base import CacheRepository
from ..repositories.memory_cache import InMemoryCacheRepository
from ..repositories.redis_cache import RedisCacheRepository
from ..utils.address import normalize_addresses
from .price_resolver import PriceResolutionService

logger = structlog.get_logger()


def create_cache_repository(settings: Settings) -> CacheRepository:
    """Build the configured cache backend."""
    backend = settings.cache_backend.lower()
    if backend == "redis":
        return RedisCacheRepository(settings.redis_url, settings.redis_db, settings.redis_key_prefix)
    if backend == "memory":
        return InMemoryCacheRepository(settings.redis_key_prefix)
    raise ValueError(f"Unknown cache backend: {settings.cache_backend}")


class CachedPriceService:
    """Serve identical requests from cache within the validity window."""

    def __init__(self, resolver: PriceResolutionService, cache: CacheRepository, ttl_seconds: int):
        self.resolver = resolver
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def cache_key(chain_id: int, addresses: Iterable[str]) -> str:
        return f"prices:{chain_id}:{','.join(sorted(addresses))}"

    async def get_prices(self, chain_id: int, addresses: Union[str, Iterable[str]]) -> Dict[str, float]:
        """Prices for the normalized address set, cached per (chain, addresses)."""
        requested = normalize_addresses(addresses)
        if not requested:
            return {}

        key = self.cache_key(chain_id, requested)

        cached = await self._read(key)
        if cached is not None:
            logger.debug("Serving prices from cache", chain_id=chain_id, tokens=len(requested))
            return cached

        prices = await self.resolver.resolve(chain_id, requested)
        await self._write(key, prices)
        return prices

    async def _read(self, key: str) -> Optional[Dict[str, float]]:
        try:
            payload = await self.cache.get_json(key)
        except Exception as e:
            logger.warning("Cache read failed, resolving fresh", key=key, error=str(e))
            return None

        if not payload or not isinstance(payload.get("prices"), dict):
            return None
        return {address: float(price) for address, price in payload["prices"].items()}

    async def _write(self, key: str, prices: Dict[str, float]) -> None:
        if self.ttl_seconds <= 0:
            return
        try:
            await self.cache.set_json(key, {"prices": prices}, ttl=self.ttl_seconds)
        except Exception as e:
            logger.warning("Cache write failed", key=key, error=str(e))
