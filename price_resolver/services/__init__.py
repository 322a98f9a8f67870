from .aggregator_client import AggregatorClient
from .base_blockchain import BaseBlockchainService
from .errors import PriceResolverError, RPCError
from .pool_registry import PoolRegistryResolver
from .price_cache import CachedPriceService, create_cache_repository
from .price_resolver import PriceResolutionService, first_positive
from .price_service import TokenPriceService
from .reserve_oracle import ReserveOracle

__all__ = [
    "AggregatorClient",
    "BaseBlockchainService",
    "CachedPriceService",
    "PoolRegistryResolver",
    "PriceResolutionService",
    "PriceResolverError",
    "RPCError",
    "ReserveOracle",
    "TokenPriceService",
    "create_cache_repository",
    "first_positive",
]
