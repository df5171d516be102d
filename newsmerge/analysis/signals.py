"""Maturity and trust labels for stories and clusters.

Both labels are recomputed from current counts and timestamps on every call;
no transition history is stored. Contradiction detection is not implemented.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from ..models import ConfidenceLevel, Signal, SourceRecord
from ..processors.vocabulary import DEFAULT_VOCABULARY

BREAKING_WINDOW = timedelta(minutes=30)
DEVELOPING_WINDOW = timedelta(hours=6)


def is_verified_source(source_name: str | None, verified_sources: Iterable[str] = DEFAULT_VOCABULARY.verified_sources) -> bool:
    lower = (source_name or "").lower()
    return bool(lower) and any(vs in lower for vs in verified_sources)


def count_verified(sources: Iterable[SourceRecord], verified_sources: Iterable[str] = DEFAULT_VOCABULARY.verified_sources) -> int:
    allow = tuple(verified_sources)
    return sum(1 for s in sources if is_verified_source(s.source_name, allow))


def determine_signal(first_published: Optional[datetime], source_count: int, *, now: Optional[datetime] = None) -> Signal:
    if first_published is None:
        return "developing"
    now = now or datetime.now(timezone.utc)
    age = now - first_published

    if age < BREAKING_WINDOW:
        return "breaking"
    if age < DEVELOPING_WINDOW and source_count >= 2:
        return "developing"
    if source_count >= 3:
        return "stabilized"
    return "developing"


def determine_confidence(source_count: int, verified_count: int) -> ConfidenceLevel:
    if verified_count >= 3:
        return "high"
    if source_count >= 3 or verified_count >= 2:
        return "medium"
    return "low"
