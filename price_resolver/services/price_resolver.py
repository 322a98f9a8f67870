"""Token price resolution: aggregator first, AMM pools as fallback."""

from typing import Awaitable, Callable, Dict, Iterable, Optional, Tuple, Union
import asyncio
import structlog

from ..config.settings import ChainConfig, Settings
from ..models.price import VARIANT_ORDER, PriceSource, ReferencePrices
from ..utils.address import normalize_addresses
from .aggregator_client import AggregatorClient
from .base_blockchain import BaseBlockchainService
from .pool_registry import PoolRegistryResolver
from .reserve_oracle import ReserveOracle

logger = structlog.get_logger()

PriceAttempt = Callable[[], Awaitable[float]]
Resolution = Tuple[float, PriceSource]


async def first_positive(attempts: Iterable[PriceAttempt]) -> float:
    """Evaluate attempts in order and return the first strictly positive price."""
    for attempt in attempts:
        price = await attempt()
        if price > 0:
            return price
    return 0.0


class PriceResolutionService:
    """Resolve USD prices for a batch of token addresses on one chain.

    Per address: aggregator hit, else a direct pool against the stable unit,
    else a pool against the volatile reference token multiplied by the
    reference price. Anything left is reported as 0.
    """

    def __init__(
        self,
        chain_config: ChainConfig,
        blockchain: BaseBlockchainService,
        aggregator: AggregatorClient,
        settings: Optional[Settings] = None,
        pool_registry: Optional[PoolRegistryResolver] = None,
        reserve_oracle: Optional[ReserveOracle] = None
    ):
        self.chain_config = chain_config
        self.settings = settings or Settings()
        self.blockchain = blockchain
        self.aggregator = aggregator
        self.pool_registry = pool_registry or PoolRegistryResolver(blockchain, chain_config.factory)
        self.reserve_oracle = reserve_oracle or ReserveOracle(blockchain, chain_config, self.settings)

    @property
    def chain_id(self) -> int:
        return self.chain_config.chain_id

    async def resolve(self, chain_id: int, addresses: Union[str, Iterable[str]]) -> Dict[str, float]:
        """Map every valid requested address to its USD price (0 if unresolved)."""
        resolutions = await self.resolve_with_sources(chain_id, addresses)
        return {address: price for address, (price, _) in resolutions.items()}

    async def resolve_with_sources(
        self,
        chain_id: int,
        addresses: Union[str, Iterable[str]]
    ) -> Dict[str, Resolution]:
        """Like resolve(), but also report where each price came from."""
        requested = normalize_addresses(addresses)
        if not requested:
            return {}

        if chain_id != self.chain_id:
            logger.info("Unsupported chain, returning zero prices",
                        chain_id=chain_id,
                        requested=len(requested))
            return {address: (0.0, PriceSource.UNRESOLVED) for address in requested}

        resolved: Dict[str, Resolution] = {}

        aggregator_prices = await self.aggregator.fetch_prices(
            self.chain_config.aggregator_prefix, requested
        )
        for address, price in aggregator_prices.items():
            if address in requested:
                resolved[address] = (price, PriceSource.AGGREGATOR)

        residual = sorted(requested - resolved.keys())
        if residual:
            references = await self.compute_reference_prices()
            self._seed_references(resolved, requested, references)

            residual = [address for address in residual if address not in resolved]
            resolved.update(await self._resolve_residual(residual, references))

        # Every requested address gets an entry
        for address in requested:
            resolved.setdefault(address, (0.0, PriceSource.UNRESOLVED))

        self._log_summary(resolved)
        return resolved

    async def compute_reference_prices(self) -> ReferencePrices:
        """Reference and tracked token prices in stable units (0 if unavailable)."""
        stable = self.chain_config.stable_token
        reference_price, tracked_price = await asyncio.gather(
            self.price_via_pools(self.chain_config.reference_token, stable),
            self.price_via_pools(self.chain_config.tracked_token, stable),
        )

        logger.debug("Reference prices computed",
                     reference_price=reference_price,
                     tracked_price=tracked_price)

        return ReferencePrices(reference_price=reference_price, tracked_price=tracked_price)

    async def reference_prices(self) -> Dict[str, float]:
        """Reference prices keyed by token address, including the stable unit at 1.0."""
        references = await self.compute_reference_prices()
        return {
            self.chain_config.reference_token: references.reference_price,
            self.chain_config.tracked_token: references.tracked_price,
            self.chain_config.stable_token: 1.0,
        }

    async def price_via_pools(self, base_token: str, quote_token: str) -> float:
        """Price of base in quote from the first variant pool yielding a positive price."""
        return await first_positive(
            self._pool_attempt(base_token, quote_token, variant) for variant in VARIANT_ORDER
        )

    def _pool_attempt(self, base_token: str, quote_token: str, variant) -> PriceAttempt:
        async def attempt() -> float:
            pool = await self.pool_registry.resolve_pool(base_token, quote_token, variant)
            if pool is None:
                return 0.0
            return await self.reserve_oracle.spot_price(pool, base_token, quote_token)
        return attempt

    async def resolve_on_chain(self, token: str, references: ReferencePrices) -> Resolution:
        """Direct stable-unit pool first, then two hops through the reference token."""
        stable = self.chain_config.stable_token
        reference = self.chain_config.reference_token

        if token == stable:
            return 1.0, PriceSource.REFERENCE

        direct = await self.price_via_pools(token, stable)
        if direct > 0:
            return direct, PriceSource.DEX_DIRECT

        if token != reference and references.reference_price > 0:
            in_reference = await self.price_via_pools(token, reference)
            if in_reference > 0:
                return in_reference * references.reference_price, PriceSource.DEX_TWO_HOP

        return 0.0, PriceSource.UNRESOLVED

    async def quote_named_pools(self) -> Dict[str, float]:
        """Spot price (base in quote) for each configured named pool."""
        names = list(self.chain_config.named_pools)
        quotes = await asyncio.gather(*(
            self.reserve_oracle.spot_price(pool["pool"], pool["base"], pool["quote"])
            for pool in self.chain_config.named_pools.values()
        ))
        return dict(zip(names, quotes))

    def _seed_references(
        self,
        resolved: Dict[str, Resolution],
        requested: set,
        references: ReferencePrices
    ) -> None:
        seeds = {
            self.chain_config.reference_token: references.reference_price,
            self.chain_config.tracked_token: references.tracked_price,
            self.chain_config.stable_token: 1.0,
        }
        for address, price in seeds.items():
            if address in requested and address not in resolved and price > 0:
                resolved[address] = (price, PriceSource.REFERENCE)

    async def _resolve_residual(self, residual, references: ReferencePrices) -> Dict[str, Resolution]:
        """Resolve missing tokens concurrently, bounded by max_concurrent_tokens."""
        if not residual:
            return {}

        semaphore = asyncio.Semaphore(max(1, self.settings.max_concurrent_tokens))

        async def resolve_one(token: str) -> Resolution:
            async with semaphore:
                try:
                    return await asyncio.wait_for(
                        self.resolve_on_chain(token, references),
                        timeout=self.settings.token_resolution_timeout
                    )
                except asyncio.TimeoutError:
                    logger.warning("On-chain resolution timed out",
                                   token=token,
                                   timeout=self.settings.token_resolution_timeout)
                    return 0.0, PriceSource.UNRESOLVED

        results = await asyncio.gather(*(resolve_one(token) for token in residual))
        return dict(zip(residual, results))

    def _log_summary(self, resolved: Dict[str, Resolution]) -> None:
        counts = {source.value: 0 for source in PriceSource}
        for _, source in resolved.values():
            counts[source.value] += 1
        logger.info("Prices resolved",
                    chain_id=self.chain_id,
                    requested=len(resolved),
                    **counts)
