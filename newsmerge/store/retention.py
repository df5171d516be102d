from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from ..models import RawItem, Story
from ..utils.logging import get_logger
from .base import StoryStore

DEFAULT_RETENTION_HOURS = 48

logger = get_logger("nm.store.retention")


def retention_cutoff(retention_hours: float = DEFAULT_RETENTION_HOURS, now: Optional[datetime] = None) -> datetime:
    """Oldest first-publication time still inside the window; a naive ``now`` is read as UTC."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now - timedelta(hours=retention_hours)


def is_expired(published_at: datetime, *, retention_hours: float = DEFAULT_RETENTION_HOURS, now: Optional[datetime] = None) -> bool:
    return published_at < retention_cutoff(retention_hours, now)


def sweep_expired(store: StoryStore, *, retention_hours: float = DEFAULT_RETENTION_HOURS, now: Optional[datetime] = None) -> int:
    """Delete stories first published before the retention horizon."""
    cutoff = retention_cutoff(retention_hours, now)
    deleted = store.delete_stories_older_than(cutoff)
    logger.info("Retention sweep removed %d stor(ies) older than %s", deleted, cutoff.isoformat())
    return deleted


def story_to_item(story: Story) -> RawItem:
    """View a stored story as a clusterable item carrying its attached sources."""
    primary = story.sources[0] if story.sources else None
    return RawItem(
        id=story.id,
        headline=story.headline,
        summary=story.summary,
        category=story.category,
        source=primary.source_name if primary else "",
        source_url=primary.source_url if primary else "",
        published_at=story.first_published_at,
        image_url=story.image_url,
        sources=tuple(story.sources),
    )


def stories_to_items(
    stories: Iterable[Story],
    *,
    retention_hours: Optional[float] = DEFAULT_RETENTION_HOURS,
    now: Optional[datetime] = None,
) -> List[RawItem]:
    """Convert stories to items, dropping those past the retention horizon.

    Pass ``retention_hours=None`` to keep everything.
    """
    cutoff = retention_cutoff(retention_hours, now) if retention_hours is not None else None
    return [story_to_item(s) for s in stories if cutoff is None or s.first_published_at >= cutoff]
