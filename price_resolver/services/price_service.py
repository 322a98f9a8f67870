"""Price service wiring the RPC client, aggregator, pipeline and cache."""

from typing import Dict, Any, Iterable, Optional, Union
from datetime import datetime, timezone
import structlog

from ..config.settings import ChainConfig, Settings
from ..repositories.base import CacheRepository
from .aggregator_client import AggregatorClient
from .base_blockchain import BaseBlockchainService
from .price_cache import CachedPriceService, create_cache_repository
from .price_resolver import PriceResolutionService

logger = structlog.get_logger()


class TokenPriceService:
    """Main price service orchestrating all components."""

    def __init__(
        self,
        chain_config: ChainConfig,
        settings: Optional[Settings] = None,
        cache: Optional[CacheRepository] = None
    ):
        self.settings = settings or Settings()
        self.chain_config = chain_config
        self.base_blockchain = BaseBlockchainService(chain_config, self.settings)
        self.aggregator = AggregatorClient(self.settings)
        self.resolver = PriceResolutionService(
            chain_config,
            self.base_blockchain,
            self.aggregator,
            self.settings
        )
        self.cache = cache or create_cache_repository(self.settings)
        self.cached_prices = CachedPriceService(self.resolver, self.cache, self.settings.cache_ttl_seconds)

    @classmethod
    def from_configs(
        cls,
        chain_configs: Dict[int, ChainConfig],
        settings: Optional[Settings] = None
    ) -> "TokenPriceService":
        """Build the service for the supported chain."""
        settings = settings or Settings()
        chain_config = chain_configs.get(settings.supported_chain_id)
        if chain_config is None:
            raise ValueError(f"Chain ID {settings.supported_chain_id} not found in configuration")
        return cls(chain_config, settings)

    async def connect(self) -> None:
        await self.base_blockchain.connect()
        await self.aggregator.connect()
        await self.cache.connect()
        logger.info("Price service connected",
                    chain_id=self.chain_config.chain_id,
                    cache_backend=self.settings.cache_backend,
                    cache_ttl_seconds=self.settings.cache_ttl_seconds)

    async def disconnect(self) -> None:
        await self.base_blockchain.disconnect()
        await self.aggregator.disconnect()
        await self.cache.disconnect()

    async def get_prices(self, chain_id: int, addresses: Union[str, Iterable[str]]) -> Dict[str, float]:
        return await self.cached_prices.get_prices(chain_id, addresses)

    async def quote_named_pools(self) -> Dict[str, float]:
        return await self.resolver.quote_named_pools()

    async def reference_prices(self) -> Dict[str, float]:
        return await self.resolver.reference_prices()

    async def health_check(self) -> Dict[str, Any]:
        """Comprehensive health check."""
        health = {
            "status": "healthy",
            "chain_id": self.chain_config.chain_id,
            "chain_name": self.chain_config.name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "components": {}
        }

        rpc_health = await self.base_blockchain.health_check()
        health["components"]["rpc"] = rpc_health
        if rpc_health["status"] != "healthy":
            health["status"] = "unhealthy"

        cache_ok = await self.cache.health_check()
        health["components"]["cache"] = {
            "status": "healthy" if cache_ok else "unhealthy",
            "backend": self.settings.cache_backend
        }
        if not cache_ok:
            health["status"] = "unhealthy"

        return health
