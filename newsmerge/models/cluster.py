from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Literal

from .item import RawItem, SourceRecord

ConfidenceLevel = Literal["low", "medium", "high"]
Signal = Literal["breaking", "developing", "stabilized"]


@dataclass(slots=True)
class Cluster:
    """Read-time grouping of items about the same event.

    ``id`` mirrors the representative item's id and is only a display key;
    clusters carry no identity across runs.
    """

    id: str
    representative: RawItem
    headline: str
    summary: str
    category: str
    sources: List[SourceRecord]
    source_count: int
    verified_source_count: int
    confidence: ConfidenceLevel
    signal: Signal
    first_published: datetime
    last_updated: datetime
    items: List[RawItem] = field(default_factory=list)
    # No contradiction detection exists yet
    is_contradicted: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "headline": self.headline,
            "summary": self.summary,
            "category": self.category,
            "sources": [s.to_dict() for s in self.sources],
            "source_count": self.source_count,
            "verified_source_count": self.verified_source_count,
            "confidence": self.confidence,
            "signal": self.signal,
            "first_published": self.first_published.isoformat(),
            "last_updated": self.last_updated.isoformat(),
            "item_ids": [i.id for i in self.items],
            "is_contradicted": self.is_contradicted,
        }


@dataclass(slots=True)
class TimeBlock:
    id: str
    label: str
    items: List[RawItem] = field(default_factory=list)
    clusters: List[Cluster] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.items and not self.clusters
