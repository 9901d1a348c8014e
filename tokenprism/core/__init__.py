"""tokenprism core: models, merge engine, storage, sources and services."""

from tokenprism.core.config.settings import ConfigManager, TokenPrismConfig
from tokenprism.core.models import NormalizedObservation, TokenRecord

__all__ = ["ConfigManager", "TokenPrismConfig", "NormalizedObservation", "TokenRecord"]
