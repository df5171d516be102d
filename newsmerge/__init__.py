"""Top-level package for the newsmerge story deduplication engine.

This package merges republications of the same news event into durable
stories at ingestion time, and groups recent items into read-time clusters
labelled with maturity and confidence signals.
"""

__all__ = []
