"""Tests for the command line interface."""

from unittest.mock import AsyncMock, MagicMock, patch

from click.testing import CliRunner

from price_resolver.main import cli
from price_resolver.models.price import PriceSource

from .conftest import TOKEN_A, TOKEN_B


def fake_service(resolutions):
    service = MagicMock()
    service.connect = AsyncMock()
    service.disconnect = AsyncMock()
    service.resolver.resolve_with_sources = AsyncMock(return_value=resolutions)
    return service


@patch("price_resolver.main.configure_logging")
class TestResolveCommand:
    def test_prints_prices(self, _logging):
        service = fake_service({TOKEN_A: (2.5, PriceSource.DEX_DIRECT), TOKEN_B: (0.0, PriceSource.UNRESOLVED)})

        with patch("price_resolver.main.TokenPriceService.from_configs", return_value=service):
            result = CliRunner().invoke(cli, ["resolve", TOKEN_A, TOKEN_B])

        assert result.exit_code == 0
        assert f'"{TOKEN_A}": 2.5' in result.output
        assert f'"{TOKEN_B}": 0.0' in result.output
        service.disconnect.assert_awaited_once()

    def test_show_source(self, _logging):
        service = fake_service({TOKEN_A: (1500.0, PriceSource.DEX_TWO_HOP)})

        with patch("price_resolver.main.TokenPriceService.from_configs", return_value=service):
            result = CliRunner().invoke(cli, ["resolve", TOKEN_A, "--show-source"])

        assert result.exit_code == 0
        assert '"source": "dex_two_hop"' in result.output
        assert '"price": "1500"' in result.output

    def test_requires_addresses(self, _logging):
        result = CliRunner().invoke(cli, ["resolve"])

        assert result.exit_code != 0


def test_config_command_lists_bundled_chain():
    result = CliRunner().invoke(cli, ["config"])

    assert result.exit_code == 0
    assert "8453: base" in result.output
    assert "Named pools: iaero_aero, liq_usdc, aero_usdc" in result.output
