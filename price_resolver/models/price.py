from pydantic import BaseModel, Field
from typing import Dict, Optional
from datetime import datetime, timezone
from enum import Enum


class PoolVariant(str, Enum):
    """Pool curve types; a token pair may have one pool per variant."""
    VOLATILE = "volatile"
    STABLE = "stable"

    @property
    def is_stable(self) -> bool:
        return self is PoolVariant.STABLE


# Volatile pools carry the deeper liquidity for the pairs we price
VARIANT_ORDER = (PoolVariant.VOLATILE, PoolVariant.STABLE)


class PriceSource(str, Enum):
    """Where a resolved price came from."""
    AGGREGATOR = "aggregator"
    REFERENCE = "reference"
    DEX_DIRECT = "dex_direct"
    DEX_TWO_HOP = "dex_two_hop"
    UNRESOLVED = "unresolved"


class PoolState(BaseModel):
    """Token ordering and raw reserves of a two-token AMM pool."""

    pool_address: str = Field(..., description="Pool contract address")
    token0: str = Field(..., description="Token in slot 0")
    token1: str = Field(..., description="Token in slot 1")
    reserve0: int = Field(..., description="Raw reserve of token0")
    reserve1: int = Field(..., description="Raw reserve of token1")

    def reserve_of(self, token: str) -> Optional[int]:
        """Raw reserve for a token, or None if the pool does not hold it."""
        if token == self.token0:
            return self.reserve0
        if token == self.token1:
            return self.reserve1
        return None


class ReferencePrices(BaseModel):
    """Prices computed once per resolution run, in stable units."""

    reference_price: float = Field(0.0, description="Volatile reference token price")
    tracked_price: float = Field(0.0, description="Tracked token price")


class PriceResponse(BaseModel):
    """Token prices keyed by canonical address (0 means unresolved)."""

    prices: Dict[str, float] = Field(default_factory=dict)


class PoolQuotesResponse(BaseModel):
    """Spot prices of the chain's named pools (base in quote units)."""

    chain_id: int
    quotes: Dict[str, float] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ReferencePricesResponse(BaseModel):
    """Reference token prices keyed by canonical address."""

    chain_id: int
    prices: Dict[str, float] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
