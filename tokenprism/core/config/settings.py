"""Configuration management for the aggregation service."""

from __future__ import annotations

import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable

from loguru import logger

from tokenprism.core.exceptions import ConfigurationError


@dataclass
class StoreConfig:
    """Record store configuration"""

    url: str = "redis://localhost:6379"
    cache_ttl_seconds: int = 30
    record_ttl_seconds: int | None = None
    record_key_prefix: str = "token:"
    volume_index_key: str = "tokens:by_volume"

    def __post_init__(self) -> None:
        # records outlive several poll cycles so a missed cycle does not drop them
        if self.record_ttl_seconds is None:
            self.record_ttl_seconds = self.cache_ttl_seconds * 4


@dataclass
class AggregatorConfig:
    """Polling loop configuration"""

    poll_interval_seconds: float = 10.0
    top_tokens: int = 30
    max_concurrency: int = 8
    dexscreener_rate_limit_per_min: int = 300


@dataclass
class ProviderConfig:
    """Upstream HTTP configuration"""

    timeout: float = 10.0
    max_attempts: int = 5
    base_delay: float = 0.3
    max_delay: float = 10.0


@dataclass
class SignificanceConfig:
    """Notification policy thresholds"""

    price_change_ratio: float = 0.001
    volume_delta: float = 0.5
    spike_ratio: float = 3.0


@dataclass
class ServerConfig:
    """HTTP/WebSocket server configuration"""

    host: str = "0.0.0.0"
    port: int = 3000
    enable_websockets: bool = True
    default_page_size: int = 20
    max_page_size: int = 100
    subscriber_queue_size: int = 256


@dataclass
class LoggingConfig:
    """Logging configuration"""

    level: str = "INFO"
    file: str | None = None


@dataclass
class TokenPrismConfig:
    """Top level service configuration"""

    store: StoreConfig = field(default_factory=StoreConfig)
    aggregator: AggregatorConfig = field(default_factory=AggregatorConfig)
    providers: ProviderConfig = field(default_factory=ProviderConfig)
    significance: SignificanceConfig = field(default_factory=SignificanceConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "TokenPrismConfig":
        """Build a config from nested section dictionaries."""
        try:
            return cls(
                store=StoreConfig(**config_dict.get("store", {})),
                aggregator=AggregatorConfig(**config_dict.get("aggregator", {})),
                providers=ProviderConfig(**config_dict.get("providers", {})),
                significance=SignificanceConfig(**config_dict.get("significance", {})),
                server=ServerConfig(**config_dict.get("server", {})),
                logging=LoggingConfig(**config_dict.get("logging", {})),
            )
        except TypeError as exc:
            raise ConfigurationError(f"Unknown configuration key: {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        """Convert to nested dictionaries."""
        return {
            "store": asdict(self.store),
            "aggregator": asdict(self.aggregator),
            "providers": asdict(self.providers),
            "significance": asdict(self.significance),
            "server": asdict(self.server),
            "logging": asdict(self.logging),
        }


class ConfigManager:
    """Loads the TOML config file and applies environment overrides."""

    def __init__(self, config_path: Path | None = None, *, use_env: bool = True):
        """Create the manager.

        Args:
            config_path: TOML file, defaults to ``~/.tokenprism/config.toml``
            use_env: apply ``TOKENPRISM_*`` environment overrides
        """
        self.config_path = config_path or Path.home() / ".tokenprism" / "config.toml"
        self.use_env = use_env
        self.config = self._load_config()

    def _load_config(self) -> TokenPrismConfig:
        config_dict: dict[str, Any] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, "rb") as f:
                    config_dict = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                logger.warning("Failed to load config from {}: {}", self.config_path, e)
                config_dict = {}

        if self.use_env:
            for section, values in load_config_from_env().items():
                config_dict.setdefault(section, {}).update(values)

        return TokenPrismConfig.from_dict(config_dict)

    def get_config(self) -> TokenPrismConfig:
        """Return the current configuration."""
        return self.config

    def update_config(self, **updates: Any) -> None:
        """Deep-update the configuration."""
        config_dict = self.config.to_dict()

        def deep_update(d: dict[str, Any], u: dict[str, Any]) -> dict[str, Any]:
            for k, v in u.items():
                if isinstance(v, dict):
                    d[k] = deep_update(d.get(k, {}), v)
                else:
                    d[k] = v
            return d

        deep_update(config_dict, updates)
        self.config = TokenPrismConfig.from_dict(config_dict)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


# (environment variable, section, key, parser)
_ENV_OVERRIDES: tuple[tuple[str, str, str, Callable[[str], Any]], ...] = (
    ("TOKENPRISM_REDIS_URL", "store", "url", str),
    ("TOKENPRISM_CACHE_TTL_SECONDS", "store", "cache_ttl_seconds", int),
    ("TOKENPRISM_RECORD_TTL_SECONDS", "store", "record_ttl_seconds", int),
    ("TOKENPRISM_POLL_INTERVAL_SECONDS", "aggregator", "poll_interval_seconds", float),
    ("TOKENPRISM_TOP_TOKENS", "aggregator", "top_tokens", int),
    ("TOKENPRISM_MAX_CONCURRENCY", "aggregator", "max_concurrency", int),
    ("TOKENPRISM_DEXSCREENER_RATE_LIMIT_PER_MIN", "aggregator", "dexscreener_rate_limit_per_min", int),
    ("TOKENPRISM_PROVIDER_TIMEOUT", "providers", "timeout", float),
    ("TOKENPRISM_PROVIDER_MAX_ATTEMPTS", "providers", "max_attempts", int),
    ("TOKENPRISM_PRICE_CHANGE_RATIO", "significance", "price_change_ratio", float),
    ("TOKENPRISM_VOLUME_DELTA", "significance", "volume_delta", float),
    ("TOKENPRISM_SPIKE_RATIO", "significance", "spike_ratio", float),
    ("TOKENPRISM_HOST", "server", "host", str),
    ("TOKENPRISM_PORT", "server", "port", int),
    ("TOKENPRISM_ENABLE_WEBSOCKETS", "server", "enable_websockets", _parse_bool),
    ("TOKENPRISM_LOG_LEVEL", "logging", "level", str.upper),
    ("TOKENPRISM_LOG_FILE", "logging", "file", str),
)


def load_config_from_env() -> dict[str, Any]:
    """Collect ``TOKENPRISM_*`` overrides as nested section dictionaries."""
    config: dict[str, dict[str, Any]] = {}
    for env_name, section, key, parser in _ENV_OVERRIDES:
        raw = os.getenv(env_name)
        if raw is None:
            continue
        try:
            value = parser(raw)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid value for {env_name}: {raw!r}", key=env_name) from exc
        config.setdefault(section, {})[key] = value
    return config


def get_default_config() -> TokenPrismConfig:
    """Return the built-in defaults."""
    return TokenPrismConfig()
