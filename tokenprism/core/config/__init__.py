"""Configuration management module."""

from tokenprism.core.config.settings import (
    AggregatorConfig,
    ConfigManager,
    LoggingConfig,
    ProviderConfig,
    ServerConfig,
    SignificanceConfig,
    StoreConfig,
    TokenPrismConfig,
    get_default_config,
    load_config_from_env,
)

__all__ = [
    "ConfigManager",
    "TokenPrismConfig",
    "StoreConfig",
    "AggregatorConfig",
    "ProviderConfig",
    "SignificanceConfig",
    "ServerConfig",
    "LoggingConfig",
    "get_default_config",
    "load_config_from_env",
]
