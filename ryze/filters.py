"""
Feed items and freshness filtering.

Provides the normalized FeedItem and the time-window filter deciding which
items are new since the previous poll.
"""

import calendar
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from ryze.sanitizer import sanitize_description

logger = logging.getLogger(__name__)

DEFAULT_FRESHNESS_WINDOW = timedelta(seconds=60)


def _parse_timestamp(value: Any) -> datetime | None:
    """Convert a feedparser ``time.struct_time`` (UTC) to an aware datetime."""
    if not value:
        return None
    try:
        return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError) as e:
        logger.debug("Ignoring unparseable timestamp %r: %s", value, e)
        return None


@dataclass(frozen=True)
class FeedItem:
    """
    Normalized feed item ready for delivery.

    Attributes
    ----------
    source : str
        Display title of the feed the item comes from.
    title : str
        Item headline.
    description : str
        Sanitized single-line summary.
    link : str
        Item URL.
    published_at : datetime | None
        Publication time in UTC, None when the feed gives no usable date.
    """

    source: str = ""
    title: str = ""
    description: str = ""
    link: str = ""
    published_at: datetime | None = None

    @classmethod
    def from_feedparser(cls, entry: Any, source: str = "") -> "FeedItem":
        """
        Create a FeedItem from a feedparser entry.

        Parameters
        ----------
        entry : Any
            A feedparser entry object.
        source : str
            Title of the feed.

        Returns
        -------
        FeedItem
            Normalized item instance.
        """
        published = entry.get("published_parsed") or entry.get("updated_parsed")

        return cls(
            source=source,
            title=entry.get("title", ""),
            description=sanitize_description(entry.get("description") or entry.get("summary")),
            link=entry.get("link", ""),
            published_at=_parse_timestamp(published),
        )


def select_fresh(
    items: Iterable[FeedItem],
    now: datetime,
    window: timedelta = DEFAULT_FRESHNESS_WINDOW,
) -> list[FeedItem]:
    """
    Keep the items published within ``window`` before ``now``.

    Items without a publication time are never fresh. Order is preserved.

    Parameters
    ----------
    items : Iterable[FeedItem]
        Candidate items.
    now : datetime
        Reference time (timezone-aware).
    window : timedelta
        Trailing freshness window.

    Returns
    -------
    list[FeedItem]
        Fresh items in input order.
    """
    return [
        item
        for item in items
        if item.published_at is not None and now - item.published_at < window
    ]
