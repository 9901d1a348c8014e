"""Domain services: merge, significance, indexing, paging and the aggregator."""

from tokenprism.core.services.aggregator import CycleReport, MergeOutcome, TokenAggregator
from tokenprism.core.services.merge import MERGE_RULES, MergeKind, merge
from tokenprism.core.services.pager import Pager, decode_cursor, encode_cursor
from tokenprism.core.services.significance import SignificanceDetector, SignificanceThresholds
from tokenprism.core.services.volume_index import VolumeIndex

__all__ = [
    "CycleReport",
    "MERGE_RULES",
    "MergeKind",
    "MergeOutcome",
    "Pager",
    "SignificanceDetector",
    "SignificanceThresholds",
    "TokenAggregator",
    "VolumeIndex",
    "decode_cursor",
    "encode_cursor",
    "merge",
]
