from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass(slots=True)
class Settings:
    similarity_threshold: float = field(default_factory=lambda: float(os.getenv("NEWSMERGE_SIMILARITY_THRESHOLD", "0.45")))
    retention_hours: float = field(default_factory=lambda: float(os.getenv("NEWSMERGE_RETENTION_HOURS", "48")))
    store_path: str = field(default_factory=lambda: os.getenv("NEWSMERGE_STORE_PATH", "./.cache/stories"))
    vocabulary_path: str = field(default_factory=lambda: os.getenv("NEWSMERGE_VOCABULARY_PATH", ""))
