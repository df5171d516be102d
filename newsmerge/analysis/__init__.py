"""Read-time analysis: clustering, signal/confidence labels and recency windows."""

from .clustering import DEFAULT_SIMILARITY_THRESHOLD, build_clusters, merge_sources
from .signals import count_verified, determine_confidence, determine_signal, is_verified_source
from .time_blocks import BLOCKS, group_by_time_blocks

__all__ = [
    "DEFAULT_SIMILARITY_THRESHOLD",
    "build_clusters",
    "merge_sources",
    "count_verified",
    "determine_confidence",
    "determine_signal",
    "is_verified_source",
    "BLOCKS",
    "group_by_time_blocks",
]
