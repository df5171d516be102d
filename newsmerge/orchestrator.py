from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from .analysis import build_clusters, group_by_time_blocks
from .fetchers import fetch_rss_entries, to_raw_items
from .models import FeedInfo, RawItem, TimeBlock
from .processors import IngestReport, StoryMerger
from .processors.vocabulary import DEFAULT_VOCABULARY, Vocabulary
from .store import DEFAULT_RETENTION_HOURS, StoryStore, stories_to_items, sweep_expired
from .utils.logging import get_logger

logger = get_logger("nm.orchestrator")


class Orchestrator:
    def __init__(
        self,
        store: StoryStore,
        *,
        vocab: Vocabulary = DEFAULT_VOCABULARY,
        retention_hours: Optional[float] = None,
        similarity_threshold: Optional[float] = None,
        max_items_per_feed: int | None = None,
    ) -> None:
        self.store = store
        self.vocab = vocab
        if retention_hours is None:
            env_retention = os.getenv("NEWSMERGE_RETENTION_HOURS")
            retention_hours = float(env_retention) if env_retention else DEFAULT_RETENTION_HOURS
        self.retention_hours = retention_hours
        self.similarity_threshold = similarity_threshold
        self.max_items_per_feed = max_items_per_feed
        self.merger = StoryMerger(store, vocab=vocab, retention_hours=retention_hours)

    def _fetch_feed(self, feed: FeedInfo) -> List[RawItem]:
        try:
            items = to_raw_items(fetch_rss_entries(feed), feed)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Failed to fetch from %s: %s", feed.name, exc)
            return []
        if self.max_items_per_feed is not None and self.max_items_per_feed >= 0:
            items = items[: self.max_items_per_feed]
        return items

    def _ingest_feed(self, feed: FeedInfo) -> IngestReport:
        return self.merger.ingest_many(self._fetch_feed(feed), feed)

    def ingest_feeds(self, feeds: Iterable[FeedInfo]) -> IngestReport:
        """Fetch and ingest every feed concurrently, one worker per feed.

        Workers share the store; per-hash atomicity is the store's job.
        """
        feed_list = list(feeds)
        total = IngestReport()
        if not feed_list:
            return total

        max_workers = min(16, len(feed_list))
        logger.debug("Starting ingestion for %d feeds (workers=%d)", len(feed_list), max_workers)
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_map = {executor.submit(self._ingest_feed, f): f for f in feed_list}
            for fut in as_completed(future_map):
                feed = future_map[fut]
                try:
                    report = fut.result()
                except Exception as exc:  # noqa: BLE001 - one feed must not stop the run
                    logger.exception("Ingestion failed for %s: %s", feed.name, exc)
                    total.errors += 1
                    continue
                logger.info(
                    "Feed %s: created=%d merged=%d skipped=%d errors=%d",
                    feed.name, report.created, report.merged, report.skipped, report.errors,
                )
                total.total += report.total
                total.created += report.created
                total.merged += report.merged
                total.skipped += report.skipped
                total.errors += report.errors
                for reason, count in report.skip_reasons.items():
                    total.skip_reasons[reason] = total.skip_reasons.get(reason, 0) + count
        return total

    def sweep(self, *, now: Optional[datetime] = None) -> int:
        return sweep_expired(self.store, retention_hours=self.retention_hours, now=now)

    def run(self, feeds: Iterable[FeedInfo]) -> Tuple[IngestReport, int]:
        report = self.ingest_feeds(feeds)
        deleted = self.sweep()
        logger.info(
            "Ingestion finished: items=%d, created=%d, merged=%d, skipped=%d, errors=%d, expired=%d",
            report.total, report.created, report.merged, report.skipped, report.errors, deleted,
        )
        return report, deleted

    def time_blocks(self, *, now: Optional[datetime] = None) -> List[TimeBlock]:
        """Cluster the stored stories inside the retention window for display."""
        now = now or datetime.now(timezone.utc)
        items = stories_to_items(self.store.list_stories(), retention_hours=self.retention_hours, now=now)
        clusters = build_clusters(items, threshold=self.similarity_threshold, vocab=self.vocab, now=now)
        return group_by_time_blocks(clusters=clusters, now=now)
