#!/usr/bin/env python3
"""
Token Price Resolver - Main Entry Point

Resolves USD spot prices for token addresses: DeFiLlama first, Aerodrome
pool reserves as the on-chain fallback.
"""

import asyncio
import json
import sys
import structlog
import click

from .api_server import PriceApiServer
from .config.settings import get_settings, load_chain_configs
from .services.price_service import TokenPriceService
from .utils.decimal_utils import format_price
from .utils.logging import configure_logging

logger = structlog.get_logger()


def _apply_logging(log_format: str = None, log_level: str = None, debug: bool = False):
    settings = get_settings()
    level = "DEBUG" if debug else (log_level or settings.log_level)
    configure_logging(level, log_format or settings.log_format)
    return settings


@click.group()
def cli():
    """Token Price Resolver - USD prices for token addresses."""
    pass


@cli.command()
@click.option('--host', type=str, help='Bind address (overrides PRICE_RESOLVER_API_HOST)')
@click.option('--port', type=int, help='Bind port (overrides PRICE_RESOLVER_API_PORT)')
@click.option('--log-format', type=click.Choice(['json', 'console']), help='Log output format')
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']), help='Log level')
@click.option('--debug', is_flag=True, help='Enable debug logging (same as --log-level DEBUG)')
def serve(host: str = None, port: int = None, log_format: str = None, log_level: str = None, debug: bool = False):
    """Run the HTTP API."""
    settings = _apply_logging(log_format, log_level, debug)
    if host:
        settings.api_host = host
    if port:
        settings.api_port = port

    try:
        service = TokenPriceService.from_configs(load_chain_configs(settings=settings), settings)
        asyncio.run(PriceApiServer(service, settings).start())
    except KeyboardInterrupt:
        logger.info("Shutdown requested")
    except Exception as e:
        logger.error("API server failed", error=str(e))
        sys.exit(1)


@cli.command()
@click.argument('addresses', nargs=-1, required=True)
@click.option('--chain-id', type=int, help='Chain ID (defaults to the supported chain)')
@click.option('--show-source', is_flag=True, help='Show which source priced each token')
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']), default='WARNING')
def resolve(addresses, chain_id: int = None, show_source: bool = False, log_level: str = 'WARNING'):
    """Resolve prices for ADDRESSES once and print them as JSON."""
    settings = _apply_logging('console', log_level)
    chain_id = chain_id or settings.supported_chain_id

    async def run():
        service = TokenPriceService.from_configs(load_chain_configs(settings=settings), settings)
        await service.connect()
        try:
            return await service.resolver.resolve_with_sources(chain_id, addresses)
        finally:
            await service.disconnect()

    resolutions = asyncio.run(run())

    if show_source:
        output = {
            address: {"price": format_price(price), "source": source.value}
            for address, (price, source) in sorted(resolutions.items())
        }
    else:
        output = {address: price for address, (price, _) in sorted(resolutions.items())}

    click.echo(json.dumps({"prices": output}, indent=2))


@cli.command()
def config():
    """Show current configuration."""
    settings = get_settings()
    chain_configs = load_chain_configs(settings=settings)

    click.echo("=== Token Price Resolver Configuration ===\n")
    click.echo("Settings:")
    for key, value in settings.model_dump().items():
        if key == "rpc_api_key" and value:
            value = "***"
        click.echo(f"  {key}: {value}")

    click.echo(f"\nConfigured Chains ({len(chain_configs)}):")
    for chain_id, chain_config in chain_configs.items():
        marker = " (supported)" if chain_id == settings.supported_chain_id else ""
        click.echo(f"  {chain_id}: {chain_config.name}{marker}")
        click.echo(f"    Factory: {chain_config.factory}")
        click.echo(f"    Stable unit: {chain_config.stable_token}")
        click.echo(f"    Reference token: {chain_config.reference_token}")
        click.echo(f"    Tracked token: {chain_config.tracked_token}")
        click.echo(f"    Named pools: {', '.join(chain_config.named_pools) or '-'}")


@cli.command()
@click.argument('chain_id', type=int)
def test_connection(chain_id: int):
    """Test RPC connectivity for a chain."""
    settings = _apply_logging('console', 'WARNING')

    async def check():
        chain_configs = load_chain_configs(settings=settings)
        chain_config = chain_configs.get(chain_id)
        if chain_config is None:
            click.echo(f"Chain ID {chain_id} not found in configuration")
            return False

        service = TokenPriceService(chain_config, settings)
        await service.base_blockchain.connect()
        try:
            health = await service.base_blockchain.health_check()
        finally:
            await service.base_blockchain.disconnect()

        if health["status"] == "healthy":
            click.echo(f"Connected to {chain_config.name} (Chain ID: {chain_id})")
            click.echo(f"Latest block: {health['latest_block']}")
            return True

        click.echo(f"Failed to connect to {chain_config.name}: {health['error']}")
        return False

    if not asyncio.run(check()):
        sys.exit(1)


if __name__ == "__main__":
    cli()
