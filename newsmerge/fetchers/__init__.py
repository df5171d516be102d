"""Feed adapters that turn external feeds into RawItems."""

from .rss import RSSItem, fetch_rss_entries, to_raw_items

__all__ = ["RSSItem", "fetch_rss_entries", "to_raw_items"]
