from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

import feedparser
import requests

from ..models import FeedInfo, RawItem
from ..processors.normalize import batch_normalize
from ..utils.logging import get_logger

logger = get_logger("nm.fetchers.rss")


@dataclass(slots=True)
class RSSItem:
    title: str
    link: str
    description: Optional[str]
    published: Optional[datetime]
    image_url: Optional[str] = None


_DEFAULT_HEADERS = {
    "User-Agent": "newsmerge/0.1 (news aggregator)",
    "Accept": "application/rss+xml, application/xml, text/xml",
}


def _parse_datetime(entry: dict) -> Optional[datetime]:
    # feedparser may provide 'published_parsed' or 'updated_parsed' (UTC struct_time)
    for key in ("published_parsed", "updated_parsed"):
        tm = entry.get(key)
        if tm:
            try:
                return datetime(*tm[:6], tzinfo=timezone.utc)
            except (TypeError, ValueError):
                return None
    return None


def _image_url(entry: dict) -> Optional[str]:
    for enclosure in entry.get("enclosures") or []:
        href = enclosure.get("href") or enclosure.get("url")
        if href:
            return href
    for media in entry.get("media_content") or []:
        if media.get("url"):
            return media["url"]
    return None


def fetch_rss_entries(feed: FeedInfo, *, timeout: int = 30) -> List[RSSItem]:
    """Fetch and parse RSS/Atom feed entries.

    The request is made with ``requests`` for consistent timeouts and
    headers; the body is parsed by ``feedparser``. Entries without a title or
    link are dropped.
    """
    logger.debug("Fetching RSS from %s", feed.url)
    try:
        resp = requests.get(feed.url, headers=_DEFAULT_HEADERS, timeout=timeout)
        if resp.status_code >= 400:
            logger.warning("RSS fetch failed (%s): %s", resp.status_code, feed.url)
            resp.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("RSS request error for %s: %s", feed.url, exc)
        raise
    parsed = feedparser.parse(resp.content)

    if getattr(parsed, "bozo", False):
        # feedparser sets bozo on malformed feeds but may still parse entries
        logger.debug("Feed 'bozo' flagged for %s: %s", feed.url, getattr(parsed, "bozo_exception", None))

    items: List[RSSItem] = []
    for entry in getattr(parsed, "entries", []) or []:
        title = entry.get("title") or ""
        link = entry.get("link") or ""
        if not title or not link:
            continue
        items.append(
            RSSItem(
                title=title,
                link=link,
                description=entry.get("summary"),
                published=_parse_datetime(entry),
                image_url=_image_url(entry),
            )
        )

    logger.info("Fetched %d RSS entries from %s", len(items), feed.name)
    return items


def _item_id(feed: FeedInfo, link: str) -> str:
    return hashlib.sha256(f"{feed.name}\n{link}".encode("utf-8")).hexdigest()[:16]


def to_raw_items(entries: List[RSSItem], feed: FeedInfo) -> List[RawItem]:
    """Convert feed entries to cleaned RawItems attributed to ``feed``.

    Aggregator feeds contribute headlines only; their descriptions are
    usually another outlet's teaser.
    """
    raw = [
        RawItem(
            id=_item_id(feed, e.link),
            headline=e.title,
            summary="" if feed.source_type == "aggregator" else (e.description or ""),
            category=feed.category,
            source=feed.name,
            source_url=e.link,
            published_at=e.published,
            image_url=e.image_url,
        )
        for e in entries
    ]
    return batch_normalize(raw)
