"""tokenprism - real-time token market data aggregation.

Polls upstream sources, reconciles observations into one canonical record per
token address, serves them volume-ranked over HTTP and pushes significant
changes over a WebSocket feed.
"""

from tokenprism.core.config import ConfigManager, TokenPrismConfig
from tokenprism.core.models import NormalizedObservation, TokenRecord
from tokenprism.core.services import merge

__version__ = "0.1.0"

__all__ = ["ConfigManager", "TokenPrismConfig", "NormalizedObservation", "TokenRecord", "merge", "__version__"]
