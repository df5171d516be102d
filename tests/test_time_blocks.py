"""Tests for recency grouping."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from newsmerge.analysis.clustering import build_clusters
from newsmerge.analysis.time_blocks import group_by_time_blocks
from newsmerge.models import RawItem

NOW = datetime(2026, 3, 10, 15, 0, tzinfo=timezone.utc)


def _item(id: str, published_at, headline: str | None = None) -> RawItem:
    return RawItem(
        id=id,
        headline=headline or f"Headline {id}",
        summary="",
        category="world",
        source="Gazette",
        source_url=f"https://example.com/{id}",
        published_at=published_at,
    )


class TestGroupByTimeBlocks:
    def test_items_land_in_expected_blocks(self) -> None:
        items = [
            _item("recent", NOW - timedelta(minutes=30)),
            _item("morning", datetime(2026, 3, 10, 8, 0, tzinfo=timezone.utc)),
            _item("yesterday", datetime(2026, 3, 9, 22, 0, tzinfo=timezone.utc)),
            _item("older", datetime(2026, 3, 6, 12, 0, tzinfo=timezone.utc)),
        ]
        blocks = group_by_time_blocks(items, now=NOW, tz=timezone.utc)

        assert [b.id for b in blocks] == ["last-2-hours", "earlier-today", "yesterday", "this-week"]
        assert [[i.id for i in b.items] for b in blocks] == [["recent"], ["morning"], ["yesterday"], ["older"]]

    def test_empty_blocks_omitted(self) -> None:
        blocks = group_by_time_blocks([_item("recent", NOW - timedelta(minutes=5))], now=NOW, tz=timezone.utc)
        assert [b.id for b in blocks] == ["last-2-hours"]
        assert blocks[0].label == "Last 2 hours"

    def test_no_input(self) -> None:
        assert group_by_time_blocks(now=NOW, tz=timezone.utc) == []

    def test_two_hour_boundary_is_inclusive(self) -> None:
        [block] = group_by_time_blocks([_item("edge", NOW - timedelta(hours=2))], now=NOW, tz=timezone.utc)
        assert block.id == "last-2-hours"

    def test_missing_timestamp_goes_to_oldest_block(self) -> None:
        [block] = group_by_time_blocks([_item("undated", None)], now=NOW, tz=timezone.utc)
        assert block.id == "this-week"

    def test_day_boundary_follows_timezone(self) -> None:
        # 03:00 UTC is still the previous evening in UTC-5
        item = _item("early", datetime(2026, 3, 10, 3, 0, tzinfo=timezone.utc))
        utc = group_by_time_blocks([item], now=NOW, tz=timezone.utc)
        eastern = group_by_time_blocks([item], now=NOW, tz=timezone(timedelta(hours=-5)))
        assert utc[0].id == "earlier-today"
        assert eastern[0].id == "yesterday"

    def test_clusters_grouped_by_last_update(self) -> None:
        clusters = build_clusters(
            [
                _item("a", NOW - timedelta(minutes=20), "Flooding closes mountain roads"),
                _item("b", datetime(2026, 3, 9, 9, 0, tzinfo=timezone.utc), "Orchestra performs symphony premiere"),
            ],
            now=NOW,
        )
        blocks = group_by_time_blocks(clusters=clusters, now=NOW, tz=timezone.utc)
        assert [(b.id, [c.id for c in b.clusters]) for b in blocks] == [
            ("last-2-hours", ["a"]),
            ("yesterday", ["b"]),
        ]

    def test_naive_now_is_treated_as_utc(self) -> None:
        item = _item("recent", NOW - timedelta(minutes=30))
        [block] = group_by_time_blocks([item], now=NOW.replace(tzinfo=None), tz=timezone.utc)
        assert block.id == "last-2-hours"
