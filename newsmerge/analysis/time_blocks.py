from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Iterable, List, Optional, Tuple

from ..models import Cluster, RawItem, TimeBlock
from ..processors.normalize import parse_published_at

# (id, label) in evaluation order; the last block catches everything older
BLOCKS: Tuple[Tuple[str, str], ...] = (
    ("last-2-hours", "Last 2 hours"),
    ("earlier-today", "Earlier today"),
    ("yesterday", "Yesterday"),
    ("this-week", "This week"),
)

RECENT_WINDOW = timedelta(hours=2)


def _bounds(now: datetime, tz: Optional[tzinfo]) -> Tuple[datetime, datetime, datetime]:
    local_now = now.astimezone(tz)
    today_start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    yesterday_start = today_start - timedelta(days=1)
    return now - RECENT_WINDOW, today_start, yesterday_start


def _block_index(ts: Optional[datetime], bounds: Tuple[datetime, datetime, datetime]) -> int:
    if ts is None:
        return len(BLOCKS) - 1
    for idx, lower in enumerate(bounds):
        if ts >= lower:
            return idx
    return len(BLOCKS) - 1


def group_by_time_blocks(
    items: Iterable[RawItem] = (),
    clusters: Iterable[Cluster] = (),
    *,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> List[TimeBlock]:
    """Partition items (by publish time) and clusters (by last update) into recency windows.

    Day boundaries use ``tz`` (defaults to the system local zone); a naive
    ``now`` is read as UTC. Items without a timestamp fall into the oldest
    block. Empty blocks are omitted.
    """
    now = parse_published_at(now) or datetime.now(timezone.utc)
    bounds = _bounds(now, tz)
    blocks = [TimeBlock(id=block_id, label=label) for block_id, label in BLOCKS]

    for item in items:
        blocks[_block_index(parse_published_at(item.published_at), bounds)].items.append(item)
    for cluster in clusters:
        blocks[_block_index(cluster.last_updated, bounds)].clusters.append(cluster)

    return [b for b in blocks if not b.is_empty()]
