from .price import (
    VARIANT_ORDER,
    PoolQuotesResponse,
    PoolState,
    PoolVariant,
    PriceResponse,
    PriceSource,
    ReferencePrices,
    ReferencePricesResponse,
)

__all__ = [
    "VARIANT_ORDER",
    "PoolQuotesResponse",
    "PoolState",
    "PoolVariant",
    "PriceResponse",
    "PriceSource",
    "ReferencePrices",
    "ReferencePricesResponse",
]
