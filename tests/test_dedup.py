"""Tests for the hash-keyed ingestion merger."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from newsmerge.errors import StoreUnavailableError
from newsmerge.models import FeedInfo, RawItem, SourceRecord
from newsmerge.processors.dedup import StoryMerger, content_hash
from newsmerge.store import InMemoryStoryStore

NOW = datetime(2026, 3, 10, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def store() -> InMemoryStoryStore:
    return InMemoryStoryStore()


@pytest.fixture
def merger(store) -> StoryMerger:
    return StoryMerger(store)


@pytest.fixture
def feed() -> FeedInfo:
    return FeedInfo(name="Reuters World", url="https://feeds.example.com/world", category="world", country_code="GB")


def _item(
    id: str = "1",
    headline: str = "Govt announces new policy",
    source: str = "Reuters",
    url: str = "https://reuters.example.com/policy",
    published_at=NOW - timedelta(minutes=10),
    image_url=None,
) -> RawItem:
    return RawItem(
        id=id,
        headline=headline,
        summary="Officials outlined the plan on Tuesday.",
        category="politics",
        source=source,
        source_url=url,
        published_at=published_at,
        image_url=image_url,
    )


class TestStoryMerger:
    def test_first_sighting_creates_story(self, merger, store, feed) -> None:
        result = merger.ingest(_item(), feed, now=NOW)

        assert result.outcome == "created"
        story = store.get_story(result.story_id)
        assert story.source_count == 1
        assert len(story.sources) == 1
        assert story.first_published_at == NOW - timedelta(minutes=10)
        assert story.category == "politics"
        assert story.country_code == "GB"
        assert story.content_hash == content_hash("Govt announces new policy")

    def test_same_item_twice_is_idempotent(self, merger, store, feed) -> None:
        first = merger.ingest(_item(), feed, now=NOW)
        second = merger.ingest(_item(), feed, now=NOW + timedelta(minutes=1))

        assert second.outcome == "merged"
        assert second.story_id == first.story_id
        story = store.get_story(first.story_id)
        assert story.source_count == 1
        assert len(story.sources) == 1

    def test_republication_merges(self, merger, store, feed) -> None:
        first = merger.ingest(_item(), feed, now=NOW)
        later = NOW + timedelta(minutes=5)
        second = merger.ingest(
            _item(id="2", headline="BREAKING: Govt announces new policy!", source="BBC", url="https://bbc.example.com/p"),
            feed,
            now=later,
        )

        assert second.outcome == "merged"
        assert second.story_id == first.story_id
        story = store.get_story(first.story_id)
        assert story.source_count == 2
        assert [s.source_name for s in story.sources] == ["Reuters", "BBC"]
        assert story.last_updated_at == later
        assert story.first_published_at == NOW - timedelta(minutes=10)

    def test_tracking_params_do_not_defeat_idempotence(self, merger, store, feed) -> None:
        first = merger.ingest(_item(url="https://reuters.example.com/policy?utm_source=rss"), feed, now=NOW)
        merger.ingest(_item(url="https://reuters.example.com/policy"), feed, now=NOW)
        assert store.get_story(first.story_id).source_count == 1

    def test_merge_fills_missing_image_only(self, merger, store, feed) -> None:
        first = merger.ingest(_item(), feed, now=NOW)
        merger.ingest(_item(id="2", url="https://b.example.com/1", image_url="https://img/1.jpg"), feed, now=NOW)
        merger.ingest(_item(id="3", url="https://c.example.com/1", image_url="https://img/2.jpg"), feed, now=NOW)
        assert store.get_story(first.story_id).image_url == "https://img/1.jpg"

    def test_missing_publish_time_defaults_to_now(self, merger, store, feed) -> None:
        result = merger.ingest(_item(published_at=None), feed, now=NOW)
        assert store.get_story(result.story_id).first_published_at == NOW

    def test_unparseable_publish_time_defaults_to_now(self, merger, store, feed) -> None:
        result = merger.ingest(_item(published_at="not a date"), feed, now=NOW)
        assert store.get_story(result.story_id).first_published_at == NOW

    def test_stale_item_skipped(self, merger, store, feed) -> None:
        result = merger.ingest(_item(published_at=NOW - timedelta(hours=49)), feed, now=NOW)
        assert result.outcome == "skipped"
        assert result.reason == "stale"
        assert result.story_id is None
        assert len(store) == 0

    def test_empty_headline_skipped_as_malformed(self, merger, store, feed) -> None:
        assert merger.ingest(_item(headline="   "), feed, now=NOW).reason == "malformed"
        assert merger.ingest(_item(headline="Breaking news today"), feed, now=NOW).reason == "malformed"
        assert len(store) == 0

    def test_archived_story_is_not_merged_into(self, merger, store, feed) -> None:
        old = store.create_story(
            content_hash=content_hash("Govt announces new policy"),
            headline="Govt announces new policy",
            summary="",
            category="politics",
            first_published_at=NOW - timedelta(hours=50),
            created_at=NOW - timedelta(hours=50),
            source=SourceRecord("Old Wire", "https://old.example.com/1", NOW - timedelta(hours=50)),
        )

        result = merger.ingest(_item(), feed, now=NOW)

        assert result.outcome == "created"
        assert result.story_id != old.id
        assert store.get_story(old.id) is None
        assert store.get_story(result.story_id).source_count == 1

    def test_concurrent_create_falls_back_to_merge(self, merger, store, feed) -> None:
        first = merger.ingest(_item(), feed, now=NOW)
        existing = store.get_story(first.story_id)

        # Lookup misses as if another worker committed right after it
        with patch.object(store, "find_story_by_hash", side_effect=[None, existing]):
            result = merger.ingest(_item(id="2", url="https://other.example.com/x"), feed, now=NOW)

        assert result.outcome == "merged"
        assert result.story_id == first.story_id
        assert store.get_story(first.story_id).source_count == 2
        assert len(store) == 1

    def test_failed_counter_update_rolls_back_source(self, merger, store, feed) -> None:
        first = merger.ingest(_item(), feed, now=NOW)

        with patch.object(store, "increment_and_touch", side_effect=StoreUnavailableError("down")):
            with pytest.raises(StoreUnavailableError):
                merger.ingest(_item(id="2", url="https://other.example.com/x"), feed, now=NOW)

        story = store.get_story(first.story_id)
        assert story.source_count == 1
        assert len(story.sources) == 1

    def test_store_lookup_failure_propagates(self, merger, store, feed) -> None:
        with patch.object(store, "find_story_by_hash", side_effect=StoreUnavailableError("down")):
            with pytest.raises(StoreUnavailableError):
                merger.ingest(_item(), feed, now=NOW)


class TestIngestMany:
    def test_report_counts_and_isolation(self, merger, store, feed) -> None:
        items = [
            _item(id="1"),
            _item(id="2", headline="BREAKING: Govt announces new policy", url="https://b.example.com/1"),
            _item(id="3", headline="Flooding closes mountain roads", url="https://c.example.com/1"),
            _item(id="4", published_at=NOW - timedelta(hours=72), url="https://d.example.com/1"),
            _item(id="5", headline="", url="https://e.example.com/1"),
        ]
        original = store.create_story
        calls = {"n": 0}

        def flaky_create(**kwargs):
            calls["n"] += 1
            if calls["n"] == 2:
                raise StoreUnavailableError("write failed")
            return original(**kwargs)

        with patch.object(store, "create_story", side_effect=flaky_create):
            report = merger.ingest_many(items, feed, now=NOW)

        assert report.total == 5
        assert report.created == 1
        assert report.merged == 1
        assert report.errors == 1
        assert report.skipped == 2
        assert report.skip_reasons == {"stale": 1, "malformed": 1}
        assert "Stories created: 1" in report.to_markdown()


class TestStoryLabels:
    def test_new_story_is_classified(self, merger, store, feed) -> None:
        result = merger.ingest(_item(), feed, now=NOW)

        story = store.get_story(result.story_id)
        assert story.verified_source_count == 1
        assert story.confidence == "low"
        assert story.signal == "breaking"

    def test_labels_follow_corroboration(self, merger, store, feed) -> None:
        first = merger.ingest(_item(published_at=NOW - timedelta(hours=7)), feed, now=NOW)
        for n, outlet in enumerate(["BBC", "CNN", "Local Gazette"]):
            merger.ingest(
                _item(id=f"m{n}", source=outlet, url=f"https://{n}.example.com/policy", published_at=NOW - timedelta(hours=1)),
                feed,
                now=NOW,
            )

        story = store.get_story(first.story_id)
        assert story.source_count == 4
        assert story.verified_source_count == 3
        assert story.confidence == "high"
        assert story.signal == "stabilized"

    def test_two_verified_outlets_give_medium_confidence(self, merger, store, feed) -> None:
        first = merger.ingest(_item(), feed, now=NOW)
        merger.ingest(_item(id="2", source="BBC", url="https://bbc.example.com/policy"), feed, now=NOW)

        story = store.get_story(first.story_id)
        assert story.verified_source_count == 2
        assert story.confidence == "medium"
        assert story.signal == "breaking"

    def test_replayed_url_leaves_labels_alone(self, merger, store, feed) -> None:
        first = merger.ingest(_item(), feed, now=NOW)
        merger.ingest(_item(), feed, now=NOW + timedelta(hours=2))

        assert store.get_story(first.story_id).signal == "breaking"

    def test_labels_serialized(self, merger, store, feed) -> None:
        first = merger.ingest(_item(), feed, now=NOW)
        payload = store.get_story(first.story_id).to_dict()

        assert payload["verified_source_count"] == 1
        assert payload["confidence"] == "low"
        assert payload["signal"] == "breaking"


class TestMergerSettings:
    def test_explicit_retention_beats_environment(self, store, feed, monkeypatch) -> None:
        monkeypatch.setenv("NEWSMERGE_RETENTION_HOURS", "24")
        item = _item(published_at=NOW - timedelta(hours=30))

        assert StoryMerger(store, retention_hours=48).ingest(item, feed, now=NOW).outcome == "created"

    def test_environment_used_when_retention_not_given(self, store, feed, monkeypatch) -> None:
        monkeypatch.setenv("NEWSMERGE_RETENTION_HOURS", "24")
        merger = StoryMerger(store)

        assert merger.retention_hours == 24.0
        result = merger.ingest(_item(published_at=NOW - timedelta(hours=30)), feed, now=NOW)
        assert (result.outcome, result.reason) == ("skipped", "stale")

    def test_default_retention(self, store, monkeypatch) -> None:
        monkeypatch.delenv("NEWSMERGE_RETENTION_HOURS", raising=False)
        assert StoryMerger(store).retention_hours == 48

    def test_naive_now_is_treated_as_utc(self, merger, store, feed) -> None:
        naive_now = NOW.replace(tzinfo=None)
        first = merger.ingest(_item(), feed, now=naive_now)
        again = merger.ingest(_item(id="2", url="https://bbc.example.com/policy", source="BBC"), feed, now=naive_now)

        assert first.outcome == "created"
        assert again.outcome == "merged"
        assert store.get_story(first.story_id).last_updated_at == NOW
