from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .cluster import ConfidenceLevel, Signal
from .item import SourceRecord


@dataclass(slots=True)
class Story:
    """Durable, hash-keyed aggregate maintained at ingestion time.

    ``source_count`` always equals ``len(sources)`` once a store transaction
    commits, and ``last_updated_at`` never precedes ``first_published_at``.
    ``confidence`` and ``signal`` are the labels computed when the latest
    source arrived; read-time clusters recompute the signal against the clock.
    """

    id: str
    content_hash: str
    headline: str
    summary: str
    category: str
    first_published_at: datetime
    last_updated_at: datetime
    country_code: Optional[str] = None
    is_global: bool = False
    image_url: Optional[str] = None
    source_count: int = 0
    sources: List[SourceRecord] = field(default_factory=list)
    verified_source_count: int = 0
    confidence: ConfidenceLevel = "low"
    signal: Signal = "developing"

    def has_source_url(self, url: str) -> bool:
        return any(s.source_url == url for s in self.sources)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content_hash": self.content_hash,
            "headline": self.headline,
            "summary": self.summary,
            "category": self.category,
            "country_code": self.country_code,
            "is_global": self.is_global,
            "first_published_at": self.first_published_at.isoformat(),
            "last_updated_at": self.last_updated_at.isoformat(),
            "image_url": self.image_url,
            "source_count": self.source_count,
            "sources": [s.to_dict() for s in self.sources],
            "verified_source_count": self.verified_source_count,
            "confidence": self.confidence,
            "signal": self.signal,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Story":
        return cls(
            id=d["id"],
            content_hash=d["content_hash"],
            headline=d.get("headline") or "",
            summary=d.get("summary") or "",
            category=d.get("category") or "",
            country_code=d.get("country_code"),
            is_global=bool(d.get("is_global")),
            first_published_at=datetime.fromisoformat(d["first_published_at"]),
            last_updated_at=datetime.fromisoformat(d["last_updated_at"]),
            image_url=d.get("image_url"),
            source_count=int(d.get("source_count") or 0),
            sources=[SourceRecord.from_dict(s) for s in d.get("sources") or []],
            verified_source_count=int(d.get("verified_source_count") or 0),
            confidence=d.get("confidence") or "low",
            signal=d.get("signal") or "developing",
        )
