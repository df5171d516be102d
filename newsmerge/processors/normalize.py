from __future__ import annotations

import html
import re
from dataclasses import replace
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Iterable, List, Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse
import unicodedata

from bs4 import BeautifulSoup

from ..models import RawItem
from ..utils.logging import get_logger
from .vocabulary import DEFAULT_VOCABULARY, Vocabulary

_whitespace_re = re.compile(r"\s+")
_control_chars_re = re.compile(r"[\u0000-\u0008\u000B\u000C\u000E-\u001F\u007F]")
_cdata_re = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)
_url_re = re.compile(r"https?://\S+")
_non_word_re = re.compile(r"[\W_]+")

_PUNCT_TRANSLATION = {
    ord("\u2018"): "'",  # left single quote
    ord("\u2019"): "'",  # right single quote
    ord("\u201C"): '"',  # left double quote
    ord("\u201D"): '"',  # right double quote
    ord("\u2013"): "-",  # en dash
    ord("\u2014"): "-",  # em dash
    ord("\u00A0"): " ",  # non-breaking space
}

_TRACKING_PARAMS = {
    "utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content",
    "fbclid", "gclid", "ref", "source", "mc_cid", "mc_eid",
}

MIN_TOKEN_LENGTH = 3
HASH_KEY_LENGTH = 100
MAX_HEADLINE_LENGTH = 200
MAX_SUMMARY_LENGTH = 500

_logger = get_logger("nm.processors.normalize")


def clean_html_to_text(raw_html: str | None) -> str:
    """Clean feed markup to normalized plain text.

    - Unwrap CDATA sections
    - Strip tags
    - Unescape HTML entities
    - Collapse whitespace
    """
    if not raw_html:
        return ""

    text = _cdata_re.sub(r"\1", raw_html)
    if "<" in text:
        soup = BeautifulSoup(text, "html.parser")
        text = soup.get_text(" ")
    text = html.unescape(text)
    text = _whitespace_re.sub(" ", text)
    return text.strip()


def normalize_plain_text(text: str | None) -> str:
    """Normalize plain text for downstream processing.

    - Strip BOM
    - Replace curly quotes/dashes and non-breaking spaces
    - Unicode normalize (NFKC)
    - Remove control characters
    - Collapse whitespace
    """
    if not text:
        return ""

    if text.startswith("\ufeff"):
        text = text.lstrip("\ufeff")

    text = text.translate(_PUNCT_TRANSLATION)
    text = unicodedata.normalize("NFKC", text)
    text = _control_chars_re.sub(" ", text)
    text = _whitespace_re.sub(" ", text).strip()
    return text


def tokenize(text: str | None, stop_words: Iterable[str] = DEFAULT_VOCABULARY.stop_words) -> List[str]:
    """Split text into lowercase word tokens, dropping short tokens and stop words.

    Punctuation acts as a separator. Order is preserved and duplicates are kept.
    """
    if not text:
        return []
    stops = stop_words if isinstance(stop_words, (set, frozenset)) else frozenset(stop_words)
    words = _non_word_re.sub(" ", text.lower()).split()
    return [w for w in words if len(w) >= MIN_TOKEN_LENGTH and w not in stops]


def strip_source_suffix(title: str, suffixes: Iterable[str] = DEFAULT_VOCABULARY.source_suffixes) -> str:
    """Remove one trailing outlet attribution such as ``" - Reuters"``."""
    lowered = title.lower()
    for suffix in suffixes:
        if lowered.endswith(suffix):
            return title[: -len(suffix)]
    return title


def normalize_for_hash(headline: str | None, vocab: Vocabulary = DEFAULT_VOCABULARY) -> str:
    """Build the merge key for a headline.

    Applies markup cleaning, outlet-suffix removal and the broader operational
    stop-word list, then truncates the space-joined tokens to a fixed prefix.
    Returns an empty string when nothing meaningful is left.
    """
    text = normalize_plain_text(clean_html_to_text(headline))
    text = strip_source_suffix(text, vocab.source_suffixes)
    tokens = tokenize(text, vocab.hash_stop_words)
    return " ".join(tokens)[:HASH_KEY_LENGTH]


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def clean_headline(title: str | None, vocab: Vocabulary = DEFAULT_VOCABULARY) -> str:
    text = normalize_plain_text(clean_html_to_text(title))
    text = strip_source_suffix(text, vocab.source_suffixes).strip()
    if text:
        text = text[0].upper() + text[1:]
    return _truncate(text, MAX_HEADLINE_LENGTH)


def clean_summary(description: str | None) -> str:
    text = normalize_plain_text(clean_html_to_text(description))
    text = _whitespace_re.sub(" ", _url_re.sub("", text)).strip()
    return _truncate(text, MAX_SUMMARY_LENGTH)


def clean_url(url: str | None) -> str:
    """Drop tracking query parameters; unparseable URLs are returned unchanged."""
    if not url:
        return ""
    url = url.strip()
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    if not parsed.scheme or not parsed.netloc:
        return url
    query = [(k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True) if k not in _TRACKING_PARAMS]
    return urlunparse(parsed._replace(query=urlencode(query)))


def parse_published_at(value: str | datetime | None) -> Optional[datetime]:
    """Parse a feed timestamp into an aware UTC datetime.

    Accepts datetimes (naive values are taken as UTC), ISO 8601 strings and
    RFC 822 strings as used by RSS ``pubDate``. Returns None when unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        raw = str(value).strip()
        if not raw:
            return None
        try:
            dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            try:
                dt = parsedate_to_datetime(raw)
            except (TypeError, ValueError, IndexError):
                return None
            if dt is None:
                return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def normalize_item(item: RawItem, vocab: Vocabulary = DEFAULT_VOCABULARY) -> RawItem:
    """Return a new RawItem with cleaned headline, summary and URL."""
    headline = clean_headline(item.headline, vocab)
    summary = clean_summary(item.summary) or headline
    return replace(
        item,
        headline=headline,
        summary=summary,
        source_url=clean_url(item.source_url),
        published_at=parse_published_at(item.published_at),
    )


def batch_normalize(items: Iterable[RawItem], vocab: Vocabulary = DEFAULT_VOCABULARY) -> List[RawItem]:
    """Normalize a list of items.

    Any item that fails normalization is skipped with a warning.
    """
    normalized: List[RawItem] = []
    for it in items:
        try:
            normalized.append(normalize_item(it, vocab))
        except Exception as exc:  # noqa: BLE001 - per-item isolation
            _logger.warning("Failed to normalize item '%s': %s", getattr(it, "headline", "?"), exc)
    return normalized
