"""Tests for the RSS fetcher and feed-item conversion."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
import requests

from newsmerge.fetchers.rss import RSSItem, fetch_rss_entries, to_raw_items
from newsmerge.models import FeedInfo

SAMPLE_RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Wire</title>
    <link>https://wire.example.com</link>
    <description>Wire feed</description>
    <item>
      <title>Govt announces new policy - Reuters</title>
      <link>https://wire.example.com/a?utm_source=rss&amp;id=7</link>
      <description><![CDATA[<p>Officials <b>confirm</b> the plan.</p>]]></description>
      <pubDate>Tue, 10 Mar 2026 14:00:00 GMT</pubDate>
      <enclosure url="https://img.example.com/a.jpg" type="image/jpeg" length="100"/>
    </item>
    <item>
      <title>Entry without a link</title>
      <description>Dropped</description>
    </item>
    <item>
      <title>Flooding closes mountain roads</title>
      <link>https://wire.example.com/b</link>
    </item>
  </channel>
</rss>
"""


@pytest.fixture
def feed() -> FeedInfo:
    return FeedInfo(name="Reuters World", url="https://wire.example.com/rss", category="world")


def _response(status: int = 200, content: bytes = SAMPLE_RSS) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.content = content
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return resp


class TestFetchRssEntries:
    def test_parses_entries(self, feed: FeedInfo) -> None:
        with patch("newsmerge.fetchers.rss.requests.get", return_value=_response()) as mock_get:
            entries = fetch_rss_entries(feed, timeout=5)

        mock_get.assert_called_once()
        assert mock_get.call_args.kwargs["timeout"] == 5
        assert [e.title for e in entries] == [
            "Govt announces new policy - Reuters",
            "Flooding closes mountain roads",
        ]
        first = entries[0]
        assert first.published == datetime(2026, 3, 10, 14, 0, tzinfo=timezone.utc)
        assert first.image_url == "https://img.example.com/a.jpg"
        assert entries[1].published is None
        assert entries[1].image_url is None

    def test_http_error_propagates(self, feed: FeedInfo) -> None:
        with patch("newsmerge.fetchers.rss.requests.get", return_value=_response(status=503)):
            with pytest.raises(requests.HTTPError):
                fetch_rss_entries(feed)

    def test_network_error_propagates(self, feed: FeedInfo) -> None:
        with patch("newsmerge.fetchers.rss.requests.get", side_effect=requests.ConnectionError("down")):
            with pytest.raises(requests.ConnectionError):
                fetch_rss_entries(feed)

    def test_garbage_body_yields_no_entries(self, feed: FeedInfo) -> None:
        with patch("newsmerge.fetchers.rss.requests.get", return_value=_response(content=b"not a feed")):
            assert fetch_rss_entries(feed) == []


class TestToRawItems:
    def test_cleans_and_attributes(self, feed: FeedInfo) -> None:
        entries = [
            RSSItem(
                title="Govt announces new policy - Reuters",
                link="https://wire.example.com/a?utm_source=rss&id=7",
                description="<p>Officials <b>confirm</b> the plan.</p>",
                published=datetime(2026, 3, 10, 14, 0, tzinfo=timezone.utc),
                image_url="https://img.example.com/a.jpg",
            )
        ]
        [item] = to_raw_items(entries, feed)

        assert item.headline == "Govt announces new policy"
        assert item.summary == "Officials confirm the plan."
        assert item.source == "Reuters World"
        assert item.source_url == "https://wire.example.com/a?id=7"
        assert item.category == "world"
        assert item.image_url == "https://img.example.com/a.jpg"
        assert len(item.id) == 16

    def test_ids_stable_per_feed_and_link(self, feed: FeedInfo) -> None:
        entry = RSSItem("Title here", "https://wire.example.com/x", None, None)
        other_feed = FeedInfo(name="BBC News", url="https://bbc.example.com/rss", category="world")
        assert to_raw_items([entry], feed)[0].id == to_raw_items([entry], feed)[0].id
        assert to_raw_items([entry], feed)[0].id != to_raw_items([entry], other_feed)[0].id

    def test_aggregator_descriptions_are_dropped(self) -> None:
        aggregator = FeedInfo(
            name="Google News",
            url="https://news.example.com/rss",
            category="world",
            source_type="aggregator",
        )
        entry = RSSItem("Flooding closes mountain roads", "https://a.example.com/1", "Teaser from another outlet", None)
        [item] = to_raw_items([entry], aggregator)
        assert "Teaser" not in item.summary
        assert item.summary == item.headline
