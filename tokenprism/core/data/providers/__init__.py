"""Upstream token sources and the observation normaliser."""

from .base import HttpConfig, HttpFetcher, TokenSource
from .dexscreener import DexScreenerSource
from .geckoterminal import GeckoTerminalSource
from .jupiter import JupiterSource
from .normalizer import SourceNormalizer, build_observation

__all__ = [
    "HttpConfig",
    "HttpFetcher",
    "TokenSource",
    "GeckoTerminalSource",
    "DexScreenerSource",
    "JupiterSource",
    "SourceNormalizer",
    "build_observation",
]
