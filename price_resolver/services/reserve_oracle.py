"""Spot prices from AMM pool reserves."""

from typing import Dict, Optional
import asyncio
import aiohttp
import structlog

from ..config.settings import ChainConfig, Settings
from ..models.price import PoolState
from ..utils.decimal_utils import price_from_reserves
from .base_blockchain import BaseBlockchainService, decode_address, decode_words, function_selector
from .errors import PriceResolverError

logger = structlog.get_logger()

DEFAULT_DECIMALS = 18
MAX_DECIMALS = 77  # 10**77 is the largest power of ten below 2**256

# Solidly/Aerodrome pools return (uint256 reserve0, uint256 reserve1, uint256 blockTimestampLast)
TOKEN0_SELECTOR = function_selector("token0()")
TOKEN1_SELECTOR = function_selector("token1()")
GET_RESERVES_SELECTOR = function_selector("getReserves()")
DECIMALS_SELECTOR = function_selector("decimals()")

UPSTREAM_ERRORS = (PriceResolverError, aiohttp.ClientError, asyncio.TimeoutError, ValueError)


class ReserveOracle:
    """Read pool ordering and reserves, and convert them into a spot price."""

    def __init__(
        self,
        blockchain: BaseBlockchainService,
        chain_config: ChainConfig,
        settings: Optional[Settings] = None
    ):
        self.blockchain = blockchain
        self.chain_config = chain_config
        self.settings = settings or blockchain.settings
        self._decimals_cache: Dict[str, int] = {}

    async def get_pool_state(self, pool_address: str) -> Optional[PoolState]:
        """Token slots and raw reserves of a pool."""
        try:
            token0_result, token1_result, reserves_result = await asyncio.gather(
                self.blockchain.eth_call(pool_address, TOKEN0_SELECTOR),
                self.blockchain.eth_call(pool_address, TOKEN1_SELECTOR),
                self.blockchain.eth_call(pool_address, GET_RESERVES_SELECTOR),
            )
            reserve0, reserve1 = decode_words(reserves_result, 2)

            return PoolState(
                pool_address=pool_address,
                token0=decode_address(token0_result),
                token1=decode_address(token1_result),
                reserve0=reserve0,
                reserve1=reserve1
            )
        except UPSTREAM_ERRORS as e:
            logger.warning("Failed to get pool state", pool_address=pool_address, error=str(e))
            return None

    async def get_decimals(self, token: str) -> int:
        """Token precision: configured, then on-chain decimals(), then 18."""
        known = self.chain_config.decimals_for(token)
        if known is not None:
            return known

        if token in self._decimals_cache:
            return self._decimals_cache[token]

        if not self.settings.fetch_onchain_decimals:
            return DEFAULT_DECIMALS

        try:
            result = await self.blockchain.eth_call(token, DECIMALS_SELECTOR)
            decimals = decode_words(result, 1)[0]
        except UPSTREAM_ERRORS as e:
            logger.debug("decimals() unavailable, using default",
                         token=token,
                         default=DEFAULT_DECIMALS,
                         error=str(e))
            return DEFAULT_DECIMALS

        if decimals > MAX_DECIMALS:
            return DEFAULT_DECIMALS

        self._decimals_cache[token] = decimals
        return decimals

    async def spot_price(self, pool_address: str, base_token: str, quote_token: str) -> float:
        """Price of base_token denominated in quote_token; 0.0 when unpriceable."""
        state = await self.get_pool_state(pool_address)
        if state is None:
            return 0.0

        return await self.price_from_state(state, base_token, quote_token)

    async def price_from_state(self, state: PoolState, base_token: str, quote_token: str) -> float:
        """Spot price from an already-read pool state."""
        if base_token == quote_token:
            return 0.0

        base_reserve = state.reserve_of(base_token)
        quote_reserve = state.reserve_of(quote_token)

        if base_reserve is None or quote_reserve is None:
            logger.debug("Pool does not hold the requested pair",
                         pool_address=state.pool_address,
                         base_token=base_token,
                         quote_token=quote_token,
                         token0=state.token0,
                         token1=state.token1)
            return 0.0

        base_decimals, quote_decimals = await asyncio.gather(
            self.get_decimals(base_token),
            self.get_decimals(quote_token),
        )

        price = price_from_reserves(base_reserve, base_decimals, quote_reserve, quote_decimals)
        if price <= 0:
            logger.debug("Pool reserves are empty", pool_address=state.pool_address)
            return 0.0

        return price
