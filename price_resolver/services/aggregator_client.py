"""Batch client for the off-chain price cache (DeFiLlama coins API)."""

from typing import Dict, Iterable, Optional
import asyncio
import math
import aiohttp
import structlog

from ..config.settings import Settings

logger = structlog.get_logger()


class AggregatorClient:
    """Fetch as many prices as possible from the aggregator in one request.

    Failures of any kind degrade to an empty mapping; this is the fast path and
    must never abort a resolution.
    """

    def __init__(self, settings: Optional[Settings] = None, session: Optional[aiohttp.ClientSession] = None):
        self.settings = settings or Settings()
        self.base_url = self.settings.aggregator_url.rstrip("/")
        self.session = session
        self._owns_session = session is None

    async def connect(self) -> None:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.settings.aggregator_timeout)
            )
            self._owns_session = True

    async def disconnect(self) -> None:
        if self.session and self._owns_session:
            await self.session.close()
            self.session = None

    def build_url(self, chain_prefix: str, addresses: Iterable[str]) -> str:
        ids = ",".join(f"{chain_prefix}:{address}" for address in addresses)
        return f"{self.base_url}/prices/current/{ids}"

    async def fetch_prices(self, chain_prefix: str, addresses: Iterable[str]) -> Dict[str, float]:
        """Return {address: price} for every address the aggregator knows."""
        addresses = sorted(addresses)
        if not addresses:
            return {}

        try:
            payload = await self._fetch_json(self.build_url(chain_prefix, addresses))
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("Aggregator request failed",
                           chain_prefix=chain_prefix,
                           requested=len(addresses),
                           error=str(e))
            return {}

        prices = self.parse_prices(payload, chain_prefix, addresses)
        logger.debug("Aggregator prices fetched",
                     chain_prefix=chain_prefix,
                     requested=len(addresses),
                     found=len(prices))
        return prices

    async def _fetch_json(self, url: str) -> Optional[dict]:
        """GET the URL; None for a non-success status."""
        if self.session is None:
            await self.connect()

        async with self.session.get(
            url,
            timeout=aiohttp.ClientTimeout(total=self.settings.aggregator_timeout)
        ) as response:
            if response.status != 200:
                logger.warning("Aggregator returned non-success status", status=response.status)
                return None
            return await response.json(content_type=None)

    @staticmethod
    def parse_prices(payload: Optional[dict], chain_prefix: str, addresses: Iterable[str]) -> Dict[str, float]:
        """Extract strictly positive finite prices for the requested addresses."""
        if not isinstance(payload, dict) or not isinstance(payload.get("coins"), dict):
            return {}

        coins = {key.lower(): value for key, value in payload["coins"].items()}
        prices = {}

        for address in addresses:
            entry = coins.get(f"{chain_prefix}:{address}".lower())
            if not isinstance(entry, dict):
                continue
            price = entry.get("price")
            if isinstance(price, bool) or not isinstance(price, (int, float)):
                continue
            try:
                price = float(price)
            except OverflowError:
                continue
            if math.isfinite(price) and price > 0:
                prices[address] = price

        return prices
