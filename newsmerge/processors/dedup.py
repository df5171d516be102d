from __future__ import annotations

import hashlib
import os
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Literal, Optional

from ..analysis.signals import count_verified, determine_confidence, determine_signal
from ..errors import DuplicateStoryError, MalformedInputError, StaleInputError
from ..models import FeedInfo, RawItem, SourceRecord, Story
from ..store import StoryStore
from ..store.retention import DEFAULT_RETENTION_HOURS, is_expired
from ..utils.logging import get_logger
from .normalize import clean_url, normalize_for_hash, parse_published_at
from .vocabulary import DEFAULT_VOCABULARY, Vocabulary

Outcome = Literal["created", "merged", "skipped"]

HASH_HEX_LENGTH = 32
SOURCE_DESCRIPTION_LENGTH = 100

logger = get_logger("nm.processors.dedup")


@dataclass(slots=True)
class IngestResult:
    outcome: Outcome
    story_id: Optional[str] = None
    reason: Optional[str] = None


@dataclass(slots=True)
class IngestReport:
    total: int = 0
    created: int = 0
    merged: int = 0
    skipped: int = 0
    errors: int = 0
    skip_reasons: dict[str, int] = field(default_factory=dict)

    def to_markdown(self) -> str:
        return (
            "### Ingestion Summary\n\n"
            f"- Items received: {self.total}\n"
            f"- Stories created: {self.created}\n"
            f"- Sources merged: {self.merged}\n"
            f"- Items skipped: {self.skipped}\n"
            f"- Errors: {self.errors}\n"
        )


def content_hash(headline: str, vocab: Vocabulary = DEFAULT_VOCABULARY) -> str:
    """Fingerprint a headline for hash-keyed merging.

    Returns a 128-bit hex digest of the normalized headline, or an empty
    string when normalization leaves nothing to hash.
    """
    key = normalize_for_hash(headline, vocab)
    if not key:
        return ""
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:HASH_HEX_LENGTH]


class StoryMerger:
    """Merge incoming items into durable stories keyed by headline hash.

    One call handles one item: it either attaches the item as a new source
    of an existing live story, creates a new story, or skips the item when it
    is malformed or older than the retention horizon. Store errors propagate
    to the caller; nothing is retried here.
    """

    def __init__(
        self,
        store: StoryStore,
        *,
        vocab: Vocabulary = DEFAULT_VOCABULARY,
        retention_hours: Optional[float] = None,
    ) -> None:
        if retention_hours is None:
            env_retention = os.getenv("NEWSMERGE_RETENTION_HOURS")
            retention_hours = float(env_retention) if env_retention else DEFAULT_RETENTION_HOURS
        self.store = store
        self.vocab = vocab
        self.retention_hours = retention_hours

    # ---------------- Helpers -----------------
    def _validate(self, item: RawItem) -> str:
        if not (item.headline or "").strip():
            raise MalformedInputError(f"Item {item.id!r} has no headline")
        digest = content_hash(item.headline, self.vocab)
        if not digest:
            raise MalformedInputError(f"Item {item.id!r} headline is empty after normalization: {item.headline!r}")
        return digest

    def _published_at(self, item: RawItem, now: datetime) -> datetime:
        published = parse_published_at(item.published_at) or now
        if is_expired(published, retention_hours=self.retention_hours, now=now):
            raise StaleInputError(f"Item {item.id!r} published {published.isoformat()} is past retention")
        return published

    @staticmethod
    def _source_record(item: RawItem, feed: FeedInfo, published_at: datetime) -> SourceRecord:
        return SourceRecord(
            source_name=item.source or feed.name,
            source_url=clean_url(item.source_url),
            published_at=published_at,
            description=(item.summary or "")[:SOURCE_DESCRIPTION_LENGTH],
        )

    def _is_live(self, story: Story, now: datetime) -> bool:
        return not is_expired(story.first_published_at, retention_hours=self.retention_hours, now=now)

    def _classify(self, story: Story, now: datetime) -> None:
        verified = count_verified(story.sources, self.vocab.verified_sources)
        self.store.classify_story(
            story.id,
            verified_source_count=verified,
            confidence=determine_confidence(story.source_count, verified),
            signal=determine_signal(story.first_published_at, story.source_count, now=now),
        )

    def _merge(self, story: Story, source: SourceRecord, item: RawItem, now: datetime) -> IngestResult:
        with self.store.transaction():
            if self.store.upsert_source(story.id, source):
                self._classify(self.store.increment_and_touch(story.id, now, image_url=item.image_url), now)
                logger.debug("Merged '%s' into story %s", item.headline, story.id)
            else:
                logger.debug("Source %s already attached to story %s", source.source_url, story.id)
        return IngestResult(outcome="merged", story_id=story.id)

    def _create(self, digest: str, source: SourceRecord, item: RawItem, feed: FeedInfo, published_at: datetime, now: datetime) -> Story:
        return self.store.create_story(
            content_hash=digest,
            headline=item.headline,
            summary=item.summary or item.headline,
            category=item.category or feed.category,
            first_published_at=published_at,
            created_at=now,
            source=source,
            country_code=feed.country_code,
            is_global=feed.is_global,
            image_url=item.image_url,
        )

    # ---------------- Public API -----------------
    def ingest(self, item: RawItem, feed: FeedInfo, *, now: Optional[datetime] = None) -> IngestResult:
        now = parse_published_at(now) or datetime.now(timezone.utc)
        try:
            digest = self._validate(item)
        except MalformedInputError as exc:
            logger.warning("Skipping malformed item from %s: %s", feed.name, exc)
            return IngestResult(outcome="skipped", reason="malformed")
        try:
            published_at = self._published_at(item, now)
        except StaleInputError as exc:
            logger.debug("Skipping stale item: %s", exc)
            return IngestResult(outcome="skipped", reason="stale")

        source = self._source_record(item, feed, published_at)
        with self.store.transaction():
            existing = self.store.find_story_by_hash(digest)
            if existing is not None and not self._is_live(existing, now):
                logger.debug("Story %s for hash %s is archived; starting a new one", existing.id, digest)
                self.store.delete_story(existing.id)
                existing = None
            if existing is not None:
                return self._merge(existing, source, item, now)
            try:
                story = self._create(digest, source, item, feed, published_at, now)
            except DuplicateStoryError:
                # Another writer created the story between lookup and insert
                existing = self.store.find_story_by_hash(digest)
                if existing is None:
                    raise
                return self._merge(existing, source, item, now)
            self._classify(story, now)
        logger.debug("Created story %s for '%s'", story.id, item.headline)
        return IngestResult(outcome="created", story_id=story.id)

    def ingest_many(self, items: Iterable[RawItem], feed: FeedInfo, *, now: Optional[datetime] = None) -> IngestReport:
        """Ingest items one at a time; a failing item never stops the rest."""
        report = IngestReport()
        reasons: defaultdict[str, int] = defaultdict(int)
        for item in items:
            report.total += 1
            try:
                result = self.ingest(item, feed, now=now)
            except Exception as exc:  # noqa: BLE001 - per-item isolation
                report.errors += 1
                logger.exception("Failed to ingest '%s' from %s: %s", getattr(item, "headline", "?"), feed.name, exc)
                continue
            if result.outcome == "created":
                report.created += 1
            elif result.outcome == "merged":
                report.merged += 1
            else:
                report.skipped += 1
                reasons[result.reason or "unknown"] += 1
        report.skip_reasons = dict(reasons)
        return report
