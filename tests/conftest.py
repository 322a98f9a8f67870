"""Shared fixtures: a scripted chain and a pricing configuration for Base."""

import asyncio
from typing import Dict, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_abi import decode, encode

from price_resolver.config.settings import ChainConfig, Settings
from price_resolver.services.base_blockchain import function_selector
from price_resolver.services.errors import RPCError
from price_resolver.services.pool_registry import GET_POOL_SIGNATURE
from price_resolver.services.reserve_oracle import (
    DECIMALS_SELECTOR,
    GET_RESERVES_SELECTOR,
    TOKEN0_SELECTOR,
    TOKEN1_SELECTOR,
)
from price_resolver.utils.address import ZERO_ADDRESS

USDC = "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913"
WETH = "0x4200000000000000000000000000000000000006"
AERO = "0x940181a94a35a4569e4529a3cdfb74e38fd98631"
FACTORY = "0x420dd381b31aef6683db6b902084cb0ffece40da"

TOKEN_A = "0x" + "aa" * 20
TOKEN_B = "0x" + "bb" * 20
TOKEN_C = "0x" + "cc" * 20

GET_POOL_SELECTOR = function_selector(GET_POOL_SIGNATURE)

E18 = 10 ** 18
E6 = 10 ** 6


def _encode(types, values) -> str:
    return "0x" + encode(types, values).hex()


class FakeBlockchain:
    """In-memory chain answering the eth_calls the resolver makes."""

    def __init__(self, settings: Settings, factory: str = FACTORY):
        self.settings = settings
        self.factory = factory
        self.pools: Dict[Tuple[frozenset, bool], str] = {}
        self.pool_states: Dict[str, Tuple[str, str, int, int]] = {}
        self.decimals: Dict[str, int] = {}
        self.failing = set()
        self.malformed = set()
        self.delays: Dict[str, float] = {}
        self.calls = []
        self._next_pool = 1

    def add_pool(
        self,
        token_a: str,
        token_b: str,
        reserve_a: int,
        reserve_b: int,
        stable: bool = False,
        pool: Optional[str] = None
    ) -> str:
        """Register a pool; slots are sorted by address like the factory does."""
        if pool is None:
            pool = "0x" + f"{self._next_pool:040x}"
            self._next_pool += 1
        if token_a < token_b:
            state = (token_a, token_b, reserve_a, reserve_b)
        else:
            state = (token_b, token_a, reserve_b, reserve_a)
        self.pools[(frozenset({token_a, token_b}), stable)] = pool
        self.pool_states[pool] = state
        return pool

    async def eth_call(self, to: str, data: str) -> str:
        selector = data[:10]
        self.calls.append((to, selector))

        if to in self.delays:
            await asyncio.sleep(self.delays[to])
        if to in self.failing:
            raise RPCError("eth_call", "connection refused")
        if to in self.malformed:
            return {"unexpected": True}

        if to == self.factory and selector == GET_POOL_SELECTOR:
            token_x, token_y, stable = decode(["address", "address", "bool"], bytes.fromhex(data[10:]))
            key = (frozenset({token_x.lower(), token_y.lower()}), stable)
            return _encode(["address"], [self.pools.get(key, ZERO_ADDRESS)])

        if to in self.pool_states:
            token0, token1, reserve0, reserve1 = self.pool_states[to]
            if selector == TOKEN0_SELECTOR:
                return _encode(["address"], [token0])
            if selector == TOKEN1_SELECTOR:
                return _encode(["address"], [token1])
            if selector == GET_RESERVES_SELECTOR:
                return _encode(["uint256", "uint256", "uint256"], [reserve0, reserve1, 1700000000])

        if selector == DECIMALS_SELECTOR and to in self.decimals:
            return _encode(["uint8"], [self.decimals[to]])

        raise RPCError("eth_call", "execution reverted")

    def factory_calls(self) -> int:
        return sum(1 for to, _ in self.calls if to == self.factory)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        rpc_retry_delay=0,
        token_resolution_timeout=2.0,
        max_concurrent_tokens=4,
        cache_ttl_seconds=300,
        fetch_onchain_decimals=True,
    )


@pytest.fixture
def chain_config():
    return ChainConfig(
        chain_id=8453,
        name="base",
        rpc_urls=["https://rpc.example"],
        factory=FACTORY,
        stable_token=USDC,
        reference_token=WETH,
        tracked_token=AERO,
        token_decimals={USDC: 6, WETH: 18, AERO: 18},
        named_pools={
            "aero_usdc": {"pool": "0x" + "0f" * 20, "base": AERO, "quote": USDC},
        },
    )


@pytest.fixture
def chain(settings):
    return FakeBlockchain(settings)


@pytest.fixture
def aggregator():
    client = MagicMock()
    client.fetch_prices = AsyncMock(return_value={})
    client.connect = AsyncMock()
    client.disconnect = AsyncMock()
    return client
