from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

SourceType = Literal["primary", "secondary", "aggregator"]


@dataclass(slots=True)
class FeedInfo:
    """Configuration and ingestion metadata for one news feed."""

    name: str
    url: str
    category: str
    country_code: Optional[str] = None
    is_global: bool = False
    source_type: SourceType = "primary"
