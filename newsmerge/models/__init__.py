"""Typed models used across the application."""

from .item import RawItem, SourceRecord
from .feed import FeedInfo, SourceType
from .story import Story
from .cluster import Cluster, ConfidenceLevel, Signal, TimeBlock

__all__ = [
    "RawItem",
    "SourceRecord",
    "FeedInfo",
    "SourceType",
    "Story",
    "Cluster",
    "ConfidenceLevel",
    "Signal",
    "TimeBlock",
]
