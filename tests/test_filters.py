"""
Unit tests for feed items and the freshness filter.
"""

import time
from datetime import datetime, timedelta, timezone

import pytest

from ryze.filters import DEFAULT_FRESHNESS_WINDOW, FeedItem, select_fresh


class TestFeedItem:
    """Tests for FeedItem."""

    def test_from_feedparser(self) -> None:
        """Test building an item from a feedparser entry."""
        entry = {
            "title": "Patch 14.1 notes",
            "link": "https://example.com/patch",
            "description": "<p>Big changes</p>\n<p>More</p>",
            "published_parsed": time.struct_time((2024, 1, 1, 12, 0, 0, 0, 1, 0)),
        }

        item = FeedItem.from_feedparser(entry, "League of Legends")

        assert item.source == "League of Legends"
        assert item.title == "Patch 14.1 notes"
        assert item.link == "https://example.com/patch"
        assert item.description == "Big changes ...\n"
        assert item.published_at == datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def test_from_feedparser_falls_back_to_updated(self) -> None:
        """Test the update date is used when there is no publish date."""
        entry = {
            "title": "Atom entry",
            "updated_parsed": time.struct_time((2024, 2, 3, 4, 5, 6, 5, 34, 0)),
        }

        item = FeedItem.from_feedparser(entry)

        assert item.published_at == datetime(2024, 2, 3, 4, 5, 6, tzinfo=timezone.utc)

    def test_from_feedparser_missing_fields(self) -> None:
        """Test entries without optional fields."""
        item = FeedItem.from_feedparser({}, "Feed")

        assert item.title == ""
        assert item.link == ""
        assert item.description == ""
        assert item.published_at is None

    def test_from_feedparser_summary(self) -> None:
        """Test summary is used when description is missing."""
        item = FeedItem.from_feedparser({"summary": "Short &amp; sweet"})

        assert item.description == "Short & sweet"

    def test_immutable(self, sample_item: FeedItem) -> None:
        """Test items cannot be mutated."""
        with pytest.raises(AttributeError):
            sample_item.title = "changed"  # type: ignore[misc]


class TestSelectFresh:
    """Tests for the freshness filter."""

    def test_default_window(self) -> None:
        """Test the default window is 60 seconds."""
        assert DEFAULT_FRESHNESS_WINDOW == timedelta(seconds=60)

    def test_keeps_recent_items(self, make_item, now: datetime) -> None:
        """Test items younger than the window are kept."""
        items = [make_item(1, age=0), make_item(2, age=59.9)]

        assert select_fresh(items, now) == items

    @pytest.mark.parametrize("age", [60, 61, 3600])
    def test_excludes_old_items(self, make_item, now: datetime, age: float) -> None:
        """Test items at or beyond the window edge are excluded."""
        assert select_fresh([make_item(1, age=age)], now) == []

    def test_excludes_items_without_date(self, make_item, now: datetime) -> None:
        """Test items without a publication time are never fresh."""
        assert select_fresh([make_item(1, age=None)], now) == []

    def test_preserves_order(self, make_item, now: datetime) -> None:
        """Test retained items keep their relative order."""
        items = [
            make_item(1, age=5),
            make_item(2, age=None),
            make_item(3, age=30),
            make_item(4, age=120),
            make_item(5, age=10),
        ]

        fresh = select_fresh(items, now)

        assert [i.title for i in fresh] == ["News 1", "News 3", "News 5"]

    def test_custom_window(self, make_item, now: datetime) -> None:
        """Test a custom window."""
        items = [make_item(1, age=100), make_item(2, age=400)]

        fresh = select_fresh(items, now, timedelta(minutes=5))

        assert [i.title for i in fresh] == ["News 1"]

    def test_empty_input(self, now: datetime) -> None:
        """Test the filter is total on empty input."""
        assert select_fresh([], now) == []
