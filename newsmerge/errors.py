"""Exception types shared by the ingestion and clustering paths."""

from __future__ import annotations


class NewsmergeError(Exception):
    """Base class for all errors raised by newsmerge."""


class MalformedInputError(NewsmergeError):
    """Raised when an item has no usable headline after normalization."""


class StaleInputError(NewsmergeError):
    """Raised internally when an item is older than the retention horizon."""


class StoreUnavailableError(NewsmergeError):
    """Raised when the story store cannot be read or written."""


class DuplicateStoryError(NewsmergeError):
    """Raised by a store when a live story already exists for a content hash."""

    def __init__(self, content_hash: str) -> None:
        super().__init__(f"Live story already exists for hash {content_hash}")
        self.content_hash = content_hash


class InconsistentMergeError(NewsmergeError):
    """Raised when a transaction would leave source_count out of sync with sources."""
