"""Pool discovery through the AMM factory registry."""

from typing import Optional
import asyncio
import aiohttp
import structlog

from ..models.price import PoolVariant
from ..utils.address import canonicalize_address, is_zero_address
from .base_blockchain import BaseBlockchainService, decode_address, encode_call
from .errors import PriceResolverError

logger = structlog.get_logger()

GET_POOL_SIGNATURE = "getPool(address,address,bool)"


class PoolRegistryResolver:
    """Ask the factory contract for the pool of a token pair and variant."""

    def __init__(self, blockchain: BaseBlockchainService, factory_address: str):
        self.blockchain = blockchain
        self.factory_address = factory_address

    async def resolve_pool(self, token_x: str, token_y: str, variant: PoolVariant) -> Optional[str]:
        """Pool address for (token_x, token_y, variant), or None if there is none."""
        calldata = encode_call(
            GET_POOL_SIGNATURE,
            ["address", "address", "bool"],
            [token_x, token_y, variant.is_stable]
        )

        try:
            result = await self.blockchain.eth_call(self.factory_address, calldata)
            pool = decode_address(result)
        except (PriceResolverError, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("Factory getPool call failed",
                           token_x=token_x,
                           token_y=token_y,
                           variant=variant.value,
                           error=str(e))
            return None

        if is_zero_address(pool):
            logger.debug("No pool registered",
                         token_x=token_x,
                         token_y=token_y,
                         variant=variant.value)
            return None

        return canonicalize_address(pool)
