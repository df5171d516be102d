from __future__ import annotations

from pathlib import Path
from typing import Iterable, List
from urllib.parse import urlparse

import yaml

from ..models import FeedInfo
from ..processors.vocabulary import DEFAULT_VOCABULARY, Vocabulary


class ConfigError(Exception):
    """Raised when a configuration file is invalid or missing required fields."""


REQUIRED_FIELDS = {"name", "url", "category"}
SOURCE_TYPES = {"primary", "secondary", "aggregator"}
VOCABULARY_KEYS = {"stop_words", "hash_stop_words", "entities", "verified_sources", "source_suffixes"}


def _read_yaml(path: Path | str) -> dict:
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")
    with config_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {config_path} must be a mapping")
    return data


def _validate_feed_dict(entry: dict) -> None:
    """Validate a single feed mapping from YAML.

    Required fields: name (str), url (http/https), category (str).
    Optional fields:
      - country_code: str
      - is_global: bool
      - source_type: 'primary' | 'secondary' | 'aggregator'
    """
    missing = REQUIRED_FIELDS - set(entry)
    if missing:
        raise ConfigError(f"Missing required fields: {sorted(missing)} in {entry}")

    url_str = str(entry["url"]).strip()
    parsed = urlparse(url_str)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Invalid URL '{url_str}'. Must be absolute http(s) URL.")

    if not str(entry["category"]).strip():
        raise ConfigError(f"Empty category for feed '{entry['name']}'")

    source_type = entry.get("source_type")
    if source_type is not None and source_type not in SOURCE_TYPES:
        raise ConfigError(f"Invalid source_type '{source_type}'. Allowed: {sorted(SOURCE_TYPES)}")

    is_global = entry.get("is_global")
    if is_global is not None and not isinstance(is_global, bool):
        raise ConfigError("'is_global' must be a boolean if provided")


def _coerce_feed(entry: dict) -> FeedInfo:
    country = entry.get("country_code")
    return FeedInfo(
        name=str(entry["name"]).strip(),
        url=str(entry["url"]).strip(),
        category=str(entry["category"]).strip(),
        country_code=str(country).strip().upper() if country else None,
        is_global=bool(entry.get("is_global") or False),
        source_type=entry.get("source_type") or "primary",
    )


def load_feeds_config(path: Path | str) -> List[FeedInfo]:
    """Load ``feeds.yaml`` into typed ``FeedInfo`` instances.

    YAML structure:
      - Top-level mapping
      - Key ``feeds``: list of feed mappings with fields
          - name: string (required)
          - url: http/https URL (required)
          - category: string (required)
          - country_code: string (optional)
          - is_global: bool (optional)
          - source_type: 'primary'|'secondary'|'aggregator' (optional)

    Unknown top-level keys are ignored for forward compatibility.
    """
    data = _read_yaml(path)
    feeds_raw: Iterable[dict] = data.get("feeds") or []
    if not isinstance(feeds_raw, list):
        raise ConfigError("'feeds' must be a list in the YAML configuration")

    feeds: List[FeedInfo] = []
    for item in feeds_raw:
        if not isinstance(item, dict):
            raise ConfigError(f"Each feed must be a mapping, got: {type(item)}")
        _validate_feed_dict(item)
        feeds.append(_coerce_feed(item))
    return feeds


def _string_list(key: str, value) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{key}' must be a list of strings")
    return [v.strip().lower() for v in value if v.strip()]


def load_vocabulary(path: Path | str) -> Vocabulary:
    """Load word lists from YAML, falling back to defaults for missing keys.

    Recognized keys: stop_words, hash_stop_words, entities, verified_sources,
    source_suffixes. A custom ``stop_words`` list without ``hash_stop_words``
    keeps the default operational words on top of it.
    """
    data = _read_yaml(path)
    unknown = set(data) - VOCABULARY_KEYS
    if unknown:
        raise ConfigError(f"Unknown vocabulary keys: {sorted(unknown)}")

    stop_words = frozenset(_string_list("stop_words", data["stop_words"])) if "stop_words" in data else DEFAULT_VOCABULARY.stop_words
    if "hash_stop_words" in data:
        hash_stop_words = frozenset(_string_list("hash_stop_words", data["hash_stop_words"])) | stop_words
    else:
        hash_stop_words = stop_words | (DEFAULT_VOCABULARY.hash_stop_words - DEFAULT_VOCABULARY.stop_words)

    def _tuple(key: str, default: tuple[str, ...]) -> tuple[str, ...]:
        # Suffixes keep their leading separator whitespace
        if key not in data:
            return default
        if key == "source_suffixes":
            value = data[key]
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"'{key}' must be a list of strings")
            return tuple(v.lower() for v in value if v.strip())
        return tuple(_string_list(key, data[key]))

    return Vocabulary(
        stop_words=stop_words,
        hash_stop_words=hash_stop_words,
        entities=_tuple("entities", DEFAULT_VOCABULARY.entities),
        verified_sources=_tuple("verified_sources", DEFAULT_VOCABULARY.verified_sources),
        source_suffixes=_tuple("source_suffixes", DEFAULT_VOCABULARY.source_suffixes),
    )
