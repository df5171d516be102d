"""Processing: text normalization, entity extraction, similarity and hash deduplication."""

from .normalize import (
    clean_headline,
    clean_html_to_text,
    clean_summary,
    clean_url,
    normalize_for_hash,
    normalize_item,
    normalize_plain_text,
    batch_normalize,
    parse_published_at,
    tokenize,
)
from .entities import extract_entities
from .similarity import similarity
from .vocabulary import DEFAULT_VOCABULARY, Vocabulary
from .dedup import IngestReport, IngestResult, StoryMerger, content_hash

__all__ = [
    "clean_headline",
    "clean_html_to_text",
    "clean_summary",
    "clean_url",
    "normalize_for_hash",
    "normalize_item",
    "normalize_plain_text",
    "batch_normalize",
    "parse_published_at",
    "tokenize",
    "extract_entities",
    "similarity",
    "DEFAULT_VOCABULARY",
    "Vocabulary",
    "IngestReport",
    "IngestResult",
    "StoryMerger",
    "content_hash",
]
