"""
Shared fixtures for Ryze tests.

Provides common test fixtures for use across all test modules.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import pytest

from ryze.config import AppConfig, DiscordConfig, FeedSettings, TelegramConfig
from ryze.errors import ChatBackendError
from ryze.filters import FeedItem
from ryze.notifier import ChatMessage

FEED_URL = "https://example.com/rss.xml"

NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_rss(n: int, title: str = "League of Legends", start: datetime = NOW) -> str:
    """
    Build an RSS 2.0 document with ``n`` items, newest first, one hour apart.

    Parameters
    ----------
    n : int
        Number of items.
    title : str
        Channel title.
    start : datetime
        Publication time of the newest item.

    Returns
    -------
    str
        RSS XML.
    """
    items = []
    for i in range(n):
        published = start - timedelta(hours=i)
        items.append(
            f"""
            <item>
                <title>News {i + 1}</title>
                <link>https://example.com/news/{i + 1}</link>
                <description>&lt;p&gt;Summary {i + 1}&lt;/p&gt;</description>
                <pubDate>{published.strftime("%a, %d %b %Y %H:%M:%S +0000")}</pubDate>
            </item>"""
        )
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
    <channel>
        <title>{title}</title>
        <link>https://example.com/</link>
        <description>Latest news</description>
        {"".join(items)}
    </channel>
</rss>
"""


class FakeSession:
    """Chat session recording sent messages, optionally failing on a given send."""

    def __init__(self, fail_on: int | None = None):
        self.fail_on = fail_on
        self.attempts = 0
        self.sent: list[tuple[str, ChatMessage]] = []

    async def send_message(self, channel: str, message: ChatMessage) -> None:
        self.attempts += 1
        if self.fail_on is not None and self.attempts == self.fail_on:
            raise ChatBackendError("backend exploded")
        self.sent.append((channel, message))


class FakeBackend:
    """Chat backend handing out a single FakeSession."""

    name = "fake"

    def __init__(self, fail_on: int | None = None):
        self.fake_session = FakeSession(fail_on)
        self.opened = 0
        self.closed = 0

    @asynccontextmanager
    async def session(self) -> AsyncIterator[FakeSession]:
        self.opened += 1
        try:
            yield self.fake_session
        finally:
            self.closed += 1


@pytest.fixture
def now() -> datetime:
    """Return the reference time used across tests."""
    return NOW


@pytest.fixture
def make_item():
    """
    Return a factory for FeedItems.

    Returns
    -------
    Callable[..., FeedItem]
        Builds an item numbered ``i`` published ``age`` seconds before NOW
        (no publication time when ``age`` is None).
    """

    def factory(i: int = 1, age: float | None = 0) -> FeedItem:
        return FeedItem(
            source="League of Legends",
            title=f"News {i}",
            description=f"Summary {i}",
            link=f"https://example.com/news/{i}",
            published_at=None if age is None else NOW - timedelta(seconds=age),
        )

    return factory


@pytest.fixture
def sample_item(make_item) -> FeedItem:
    """Create a sample feed item."""
    return make_item(1)


@pytest.fixture
def fake_backend() -> FakeBackend:
    """Create a chat backend that always succeeds."""
    return FakeBackend()


@pytest.fixture
def discord_config() -> DiscordConfig:
    """Create a minimal valid Discord configuration."""
    return DiscordConfig(token="discord-token", channel_id="123456789012345678")


@pytest.fixture
def telegram_config() -> TelegramConfig:
    """Create a minimal valid Telegram configuration."""
    return TelegramConfig(
        bot_token="1234567890:ABCdefGHIjklMNOpqrsTUVwxyz",
        chat_id="-1001234567890",
    )


@pytest.fixture
def app_config(discord_config: DiscordConfig) -> AppConfig:
    """Create a minimal valid app configuration pointing at FEED_URL."""
    return AppConfig(discord=discord_config, feed=FeedSettings(url=FEED_URL))


@pytest.fixture
def minimal_env() -> dict[str, str]:
    """Return the smallest environment accepted by load_config."""
    return {
        "RYZE_DISCORD_TOKEN": "discord-token",
        "RYZE_DISCORD_CHANNEL": "123456789012345678",
    }

