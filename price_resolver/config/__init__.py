from .settings import ChainConfig, Settings, get_settings, load_chain_configs

__all__ = ["ChainConfig", "Settings", "get_settings", "load_chain_configs"]
