"""Durable story storage: contract, in-memory and JSON-file implementations."""

from .base import InMemoryStoryStore, StoryStore
from .json_store import JsonStoryStore
from .retention import (
    DEFAULT_RETENTION_HOURS,
    is_expired,
    retention_cutoff,
    stories_to_items,
    story_to_item,
    sweep_expired,
)

__all__ = [
    "StoryStore",
    "InMemoryStoryStore",
    "JsonStoryStore",
    "DEFAULT_RETENTION_HOURS",
    "is_expired",
    "retention_cutoff",
    "stories_to_items",
    "story_to_item",
    "sweep_expired",
]
