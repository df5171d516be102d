"""Pairwise similarity between news items.

``score = 0.6 * token jaccard + 0.3 * entity overlap + 0.1 * category match``
"""

from __future__ import annotations

from typing import AbstractSet

from ..models import RawItem
from .entities import extract_entities
from .normalize import tokenize
from .vocabulary import DEFAULT_VOCABULARY, Vocabulary

TOKEN_WEIGHT = 0.6
ENTITY_WEIGHT = 0.3
CATEGORY_WEIGHT = 0.1

NO_ENTITIES_SCORE = 0.5
ONE_SIDED_ENTITIES_SCORE = 0.3
CATEGORY_MISMATCH_SCORE = 0.5


def jaccard(a: AbstractSet[str], b: AbstractSet[str]) -> float:
    if not a or not b:
        return 0.0
    union = len(a | b)
    return len(a & b) / union if union else 0.0


def token_similarity(text1: str, text2: str, vocab: Vocabulary = DEFAULT_VOCABULARY) -> float:
    return jaccard(set(tokenize(text1, vocab.stop_words)), set(tokenize(text2, vocab.stop_words)))


def entity_overlap(text1: str, text2: str, vocab: Vocabulary = DEFAULT_VOCABULARY) -> float:
    e1 = extract_entities(text1, vocab.entities)
    e2 = extract_entities(text2, vocab.entities)
    # Absence of entities on both sides is not evidence either way
    if not e1 and not e2:
        return NO_ENTITIES_SCORE
    if not e1 or not e2:
        return ONE_SIDED_ENTITIES_SCORE
    return jaccard(e1, e2)


def category_match(cat1: str | None, cat2: str | None) -> float:
    return 1.0 if (cat1 or "").lower() == (cat2 or "").lower() else CATEGORY_MISMATCH_SCORE


def similarity(a: RawItem, b: RawItem, vocab: Vocabulary = DEFAULT_VOCABULARY) -> float:
    text1 = a.text
    text2 = b.text
    return (
        TOKEN_WEIGHT * token_similarity(text1, text2, vocab)
        + ENTITY_WEIGHT * entity_overlap(text1, text2, vocab)
        + CATEGORY_WEIGHT * category_match(a.category, b.category)
    )
