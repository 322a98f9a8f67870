from pydantic_settings import BaseSettings
from typing import Dict, List, Optional
import json
from pathlib import Path

import structlog

from ..utils.address import canonicalize_address

logger = structlog.get_logger()


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Blockchain settings
    supported_chain_id: int = 8453  # Base
    rpc_url: Optional[str] = None  # Overrides the chain file's rpc_urls when set
    rpc_api_key: Optional[str] = None  # Alchemy key, appended to the Alchemy base URL
    rpc_alchemy_base_url: str = "https://base-mainnet.g.alchemy.com/v2"
    rpc_timeout: int = 10  # Per eth_call timeout
    rpc_retry_delay: float = 0.25  # Delay before failing over to the next RPC URL

    # Contract address overrides (take precedence over the chain file)
    factory: Optional[str] = None
    stable_token: Optional[str] = None
    reference_token: Optional[str] = None
    tracked_token: Optional[str] = None

    # Aggregator (price cache) settings
    aggregator_url: str = "https://coins.llama.fi"
    aggregator_timeout: int = 8

    # Resolution settings
    max_concurrent_tokens: int = 8  # Fan-out cap for on-chain fallback
    token_resolution_timeout: float = 20.0
    fetch_onchain_decimals: bool = True

    # Response cache settings
    cache_backend: str = "memory"  # memory | redis
    cache_ttl_seconds: int = 300
    redis_url: str = "redis://localhost:6379"
    redis_db: int = 0
    redis_key_prefix: str = "iaero:prices"

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    class Config:
        env_file = ".env"
        env_prefix = "PRICE_RESOLVER_"


class ChainConfig:
    """Chain-specific pricing configuration.

    Holds every address the resolution pipeline needs: the factory used for
    pool discovery, the stable unit (priced at 1.0), the volatile reference
    token used for two-hop derivation and a third tracked token whose price is
    computed alongside the reference.
    """

    def __init__(
        self,
        chain_id: int,
        name: str,
        rpc_urls: List[str],
        factory: str,
        stable_token: str,
        reference_token: str,
        tracked_token: str,
        aggregator_prefix: Optional[str] = None,
        backup_rpc_urls: Optional[List[str]] = None,
        token_decimals: Optional[Dict[str, int]] = None,
        named_pools: Optional[Dict[str, Dict[str, str]]] = None
    ):
        self.chain_id = chain_id
        self.name = name
        self.aggregator_prefix = aggregator_prefix or name
        self.rpc_urls = list(rpc_urls)
        self.backup_rpc_urls = backup_rpc_urls or []
        self.factory = canonicalize_address(factory)
        self.stable_token = canonicalize_address(stable_token)
        self.reference_token = canonicalize_address(reference_token)
        self.tracked_token = canonicalize_address(tracked_token)
        self.token_decimals = {
            canonicalize_address(address): int(decimals)
            for address, decimals in (token_decimals or {}).items()
        }
        self.named_pools = {
            name: {key: canonicalize_address(value) for key, value in pool.items()}
            for name, pool in (named_pools or {}).items()
        }

        for field in ("factory", "stable_token", "reference_token", "tracked_token"):
            if getattr(self, field) is None:
                raise ValueError(f"Invalid {field} address for chain {chain_id}")

    @classmethod
    def load_from_file(cls, config_path: Path, settings: Optional[Settings] = None) -> "ChainConfig":
        """Load chain configuration from JSON file; settings may override contract addresses."""
        settings = settings or Settings()
        with open(config_path, 'r') as f:
            data = json.load(f)

        contracts = data["contracts"]

        return cls(
            chain_id=data["chain_id"],
            name=data["name"],
            rpc_urls=data.get("rpc_urls") or [data["rpc_url"]],
            factory=settings.factory or contracts["factory"],
            stable_token=settings.stable_token or contracts["stable_token"],
            reference_token=settings.reference_token or contracts["reference_token"],
            tracked_token=settings.tracked_token or contracts["tracked_token"],
            aggregator_prefix=data.get("aggregator_prefix"),
            backup_rpc_urls=data.get("backup_rpc_urls"),
            token_decimals=data.get("token_decimals"),
            named_pools=data.get("named_pools")
        )

    def resolve_rpc_urls(self, settings: Settings) -> List[str]:
        """Primary RPC URLs, honouring the environment-provided endpoint/key."""
        if settings.rpc_url:
            return [settings.rpc_url]
        if settings.rpc_api_key:
            return [f"{settings.rpc_alchemy_base_url}/{settings.rpc_api_key}"]
        return self.rpc_urls

    def decimals_for(self, token: str) -> Optional[int]:
        """Known decimals for a token, if configured."""
        return self.token_decimals.get(token)


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()


def load_chain_configs(
    config_dir: Optional[Path] = None,
    settings: Optional[Settings] = None
) -> Dict[int, ChainConfig]:
    """Load all chain configurations from JSON files in chains/ directory."""
    configs = {}
    config_dir = config_dir or Path(__file__).parent / "chains"
    settings = settings or Settings()

    if not config_dir.exists():
        raise FileNotFoundError(
            f"Chain configuration directory not found: {config_dir}. "
            "Please create the directory and add JSON configuration files."
        )

    json_files = sorted(config_dir.glob("*.json"))
    if not json_files:
        raise FileNotFoundError(
            f"No JSON configuration files found in: {config_dir}. "
            "Please add chain configuration files (e.g., base.json)."
        )

    for config_file in json_files:
        try:
            chain_config = ChainConfig.load_from_file(config_file, settings)
            configs[chain_config.chain_id] = chain_config
        except Exception as e:
            logger.error("Failed to load chain config", file=str(config_file), error=str(e))

    return configs
