"""Tests for factory-based pool discovery."""

import pytest
from eth_abi import decode

from price_resolver.models.price import PoolVariant
from price_resolver.services.pool_registry import PoolRegistryResolver

from .conftest import FACTORY, GET_POOL_SELECTOR, TOKEN_A, USDC


@pytest.fixture
def registry(chain):
    return PoolRegistryResolver(chain, FACTORY)


class TestResolvePool:
    @pytest.mark.asyncio
    async def test_returns_registered_pool(self, chain, registry):
        pool = chain.add_pool(TOKEN_A, USDC, 1, 1, stable=False)

        assert await registry.resolve_pool(TOKEN_A, USDC, PoolVariant.VOLATILE) == pool

    @pytest.mark.asyncio
    async def test_variants_are_independent(self, chain, registry):
        volatile = chain.add_pool(TOKEN_A, USDC, 1, 1, stable=False)
        stable = chain.add_pool(TOKEN_A, USDC, 1, 1, stable=True)

        assert volatile != stable
        assert await registry.resolve_pool(TOKEN_A, USDC, PoolVariant.VOLATILE) == volatile
        assert await registry.resolve_pool(TOKEN_A, USDC, PoolVariant.STABLE) == stable

    @pytest.mark.asyncio
    async def test_zero_address_means_no_pool(self, registry):
        assert await registry.resolve_pool(TOKEN_A, USDC, PoolVariant.VOLATILE) is None

    @pytest.mark.asyncio
    async def test_call_failure_means_no_pool(self, chain, registry):
        chain.add_pool(TOKEN_A, USDC, 1, 1)
        chain.failing.add(FACTORY)

        assert await registry.resolve_pool(TOKEN_A, USDC, PoolVariant.VOLATILE) is None

    @pytest.mark.asyncio
    async def test_calldata_carries_pair_and_stable_flag(self, chain, registry):
        captured = []
        original = chain.eth_call

        async def capture(to, data):
            captured.append(data)
            return await original(to, data)

        chain.eth_call = capture
        await registry.resolve_pool(TOKEN_A, USDC, PoolVariant.STABLE)

        assert captured[0].startswith(GET_POOL_SELECTOR)
        token_x, token_y, stable = decode(["address", "address", "bool"], bytes.fromhex(captured[0][10:]))
        assert (token_x.lower(), token_y.lower(), stable) == (TOKEN_A, USDC, True)
