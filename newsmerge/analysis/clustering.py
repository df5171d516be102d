from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from ..models import Cluster, RawItem, SourceRecord
from ..processors.normalize import parse_published_at
from ..processors.similarity import similarity
from ..processors.vocabulary import DEFAULT_VOCABULARY, Vocabulary
from ..utils.logging import get_logger
from .signals import count_verified, determine_confidence, determine_signal

DEFAULT_SIMILARITY_THRESHOLD = 0.45
SOURCE_DESCRIPTION_LENGTH = 100

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

logger = get_logger("nm.analysis.clustering")


def _timestamp(item: RawItem) -> Optional[datetime]:
    try:
        ts = parse_published_at(item.published_at)
    except (TypeError, ValueError) as exc:
        logger.warning("Unreadable timestamp on item %s: %s", getattr(item, "id", "?"), exc)
        return None
    if ts is None or ts <= _EPOCH:
        return None
    return ts


def _max_similarity(members: Sequence[RawItem], candidate: RawItem, vocab: Vocabulary) -> float:
    best = 0.0
    for m in members:
        try:
            score = similarity(m, candidate, vocab)
        except Exception as exc:  # noqa: BLE001 - per-item isolation
            logger.warning("Similarity failed between %s and %s: %s", m.id, candidate.id, exc)
            continue
        if score > best:
            best = score
    return best


def merge_sources(members: Iterable[RawItem], *, now: datetime) -> List[SourceRecord]:
    """Union of every member's own source and pre-attached sources.

    Deduplicated by URL (first occurrence wins) and sorted by publication
    time, oldest first.
    """
    merged: List[SourceRecord] = []
    seen_urls: set[str] = set()
    for member in members:
        if member.source_url and member.source_url not in seen_urls:
            merged.append(
                SourceRecord(
                    source_name=member.source,
                    source_url=member.source_url,
                    published_at=_timestamp(member) or now,
                    description=(member.summary or "")[:SOURCE_DESCRIPTION_LENGTH],
                )
            )
            seen_urls.add(member.source_url)
        for s in member.sources or ():
            if s.source_url not in seen_urls:
                merged.append(s)
                seen_urls.add(s.source_url)
    merged.sort(key=lambda s: parse_published_at(s.published_at) or now)
    return merged


def _build_cluster(members: List[RawItem], *, vocab: Vocabulary, now: datetime) -> Cluster:
    seed = members[0]
    sources = merge_sources(members, now=now)
    verified = count_verified(sources, vocab.verified_sources)

    times = [t for t in (_timestamp(m) for m in members) if t is not None]
    first_published = min(times) if times else now
    last_updated = max(times) if times else now

    return Cluster(
        id=seed.id,
        representative=seed,
        headline=seed.headline,
        summary=seed.summary,
        category=seed.category,
        sources=sources,
        source_count=len(sources),
        verified_source_count=verified,
        confidence=determine_confidence(len(sources), verified),
        signal=determine_signal(first_published, len(sources), now=now),
        first_published=first_published,
        last_updated=last_updated,
        items=members,
    )


def _cluster_sort_key(c: Cluster):
    return (
        0 if c.verified_source_count >= 3 else 1,
        0 if c.source_count >= 2 else 1,
        -c.source_count,
        -c.last_updated.timestamp(),
    )


def build_clusters(
    items: Iterable[RawItem],
    *,
    threshold: Optional[float] = None,
    vocab: Vocabulary = DEFAULT_VOCABULARY,
    now: Optional[datetime] = None,
) -> List[Cluster]:
    """Group items about the same event using single-link agglomeration.

    Items are visited newest first. Each unassigned item seeds a cluster, then
    the same ordering is scanned and every unassigned candidate whose best
    similarity to any current member reaches ``threshold`` joins it. Members
    added during the scan take part in later comparisons, so a cluster can
    drift away from its seed; the visiting order therefore matters.

    Every input item lands in exactly one cluster.
    """
    if threshold is None:
        env_threshold = os.getenv("NEWSMERGE_SIMILARITY_THRESHOLD")
        threshold = float(env_threshold) if env_threshold else DEFAULT_SIMILARITY_THRESHOLD
    now = parse_published_at(now) or datetime.now(timezone.utc)

    ordered = list(items)
    if not ordered:
        return []
    ordered.sort(key=lambda it: _timestamp(it) or _EPOCH, reverse=True)

    assigned = [False] * len(ordered)
    clusters: List[Cluster] = []
    for i, seed in enumerate(ordered):
        if assigned[i]:
            continue
        members = [seed]
        assigned[i] = True
        for j, candidate in enumerate(ordered):
            if assigned[j]:
                continue
            if _max_similarity(members, candidate, vocab) >= threshold:
                members.append(candidate)
                assigned[j] = True
        clusters.append(_build_cluster(members, vocab=vocab, now=now))

    clusters.sort(key=_cluster_sort_key)
    logger.debug("Clustered %d item(s) into %d cluster(s) (threshold=%.2f)", len(ordered), len(clusters), threshold)
    return clusters
