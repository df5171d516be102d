from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True, slots=True)
class SourceRecord:
    """One outlet's report attached to a story or cluster.

    Uniqueness is by ``source_url`` within the owning aggregate.
    """

    source_name: str
    source_url: str
    published_at: Optional[datetime] = None
    description: str = ""

    def to_dict(self) -> dict:
        return {
            "source_name": self.source_name,
            "source_url": self.source_url,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "SourceRecord":
        raw = d.get("published_at")
        return cls(
            source_name=d.get("source_name") or "",
            source_url=d.get("source_url") or "",
            published_at=datetime.fromisoformat(raw) if raw else None,
            description=d.get("description") or "",
        )


@dataclass(frozen=True, slots=True)
class RawItem:
    id: str
    headline: str
    summary: str
    category: str
    source: str
    source_url: str
    published_at: Optional[datetime] = None
    content: Optional[str] = None
    image_url: Optional[str] = None

    # Sources already linked to this item (e.g. when it is a stored story)
    sources: Tuple[SourceRecord, ...] = field(default_factory=tuple)

    @property
    def text(self) -> str:
        return f"{self.headline} {self.summary or ''}"
