from __future__ import annotations

from typing import FrozenSet, Iterable

from .vocabulary import DEFAULT_VOCABULARY


def _canonical(entity: str) -> str:
    return "".join(entity.split())


def extract_entities(text: str | None, entities: Iterable[str] = DEFAULT_VOCABULARY.entities) -> FrozenSet[str]:
    """Return canonical keys of vocabulary entities mentioned in ``text``.

    Matching is case-insensitive substring containment, so multi-word names
    match as phrases and short names can match inside unrelated words.
    """
    if not text:
        return frozenset()
    lower = text.lower()
    return frozenset(_canonical(e) for e in entities if e and e.lower() in lower)
