"""Curated word lists used by tokenization, entity extraction and trust scoring.

The tables are immutable and travel inside a :class:`Vocabulary` value so
callers can substitute their own lists (see ``load_vocabulary``) without
touching module state.
"""

from __future__ import annotations

from dataclasses import dataclass

STOP_WORDS = frozenset(
    {
        "a", "an", "the", "is", "are", "was", "were", "be", "been", "being",
        "have", "has", "had", "do", "does", "did", "will", "would", "could",
        "should", "may", "might", "must", "shall", "can", "need", "dare",
        "to", "of", "in", "for", "on", "with", "at", "by", "from", "as",
        "into", "through", "during", "before", "after", "above", "below",
        "and", "but", "or", "nor", "so", "yet", "both", "either", "neither",
        "not", "only", "own", "same", "than", "too", "very", "just",
        "this", "that", "here", "there", "what", "how", "why", "when",
        "where", "who", "amid", "over", "about", "while",
    }
)

# Wire boilerplate that outlets prepend or append to identical headlines
OPERATIONAL_STOP_WORDS = frozenset(
    {
        "says", "said", "report", "reports", "reported", "according", "sources",
        "breaking", "update", "updates", "live", "watch", "video", "photos",
        "exclusive", "latest", "new", "news", "today", "now",
    }
)

HASH_STOP_WORDS = STOP_WORDS | OPERATIONAL_STOP_WORDS

KEY_ENTITIES = (
    # Political figures
    "trump", "biden", "modi", "putin", "xi", "jinping", "zelenskyy", "zelensky",
    "netanyahu", "macron", "scholz", "sunak", "starmer", "harris", "obama",
    # Organizations
    "isis", "hamas", "hezbollah", "taliban", "nato", "who", "imf",
    "world bank", "fed", "rbi", "sebi", "sec", "fbi", "cia", "nasa", "isro",
    # Companies
    "apple", "google", "microsoft", "amazon", "meta", "tesla", "nvidia",
    "openai", "anthropic", "tata", "reliance", "adani", "infosys", "wipro",
    # Countries/Regions
    "ukraine", "russia", "israel", "gaza", "palestine", "syria", "iran",
    "china", "india", "pakistan", "afghanistan", "myanmar",
)

VERIFIED_SOURCES = (
    "reuters", "ap news", "associated press", "afp", "pti",
    "bbc", "cnn", "al jazeera", "npr", "nbc news", "cbs news", "abc news",
    "new york times", "washington post", "the guardian", "the hindu",
    "times of india", "hindustan times", "financial times", "wall street journal",
    "bloomberg", "cnbc", "forbes", "economic times", "marketwatch",
    "techcrunch", "the verge", "ars technica", "wired",
)

SOURCE_SUFFIXES = (
    " - reuters", " - bbc", " - cnn", " - ap", " - nyt", " | bbc",
    " | reuters", " | the guardian", " - the hindu", " - ndtv",
    " - times of india", " | al jazeera", " - washington post",
    " - new york times", " | cnn", " - abc news", " - fox news",
    " | npr", " - npr", " | forbes", " - forbes", " | techcrunch",
    " - associated press", " | associated press",
)


@dataclass(frozen=True, slots=True)
class Vocabulary:
    stop_words: frozenset[str] = STOP_WORDS
    hash_stop_words: frozenset[str] = HASH_STOP_WORDS
    entities: tuple[str, ...] = KEY_ENTITIES
    verified_sources: tuple[str, ...] = VERIFIED_SOURCES
    source_suffixes: tuple[str, ...] = SOURCE_SUFFIXES


DEFAULT_VOCABULARY = Vocabulary()
