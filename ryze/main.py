"""
Main entry point for Ryze.

Runs the long-running relay (scheduled polling plus health check) or the
one-shot backfill notifier.
"""

import argparse
import asyncio
import logging
import os
import signal
import sys
from datetime import datetime, timedelta, timezone
from urllib.parse import urlparse

import coloredlogs

from ryze import __commit__, __version__
from ryze.config import AppConfig, load_config
from ryze.delivery import deliver
from ryze.discord import DiscordBackend
from ryze.errors import ConfigError, DeliveryError, RyzeError
from ryze.filters import select_fresh
from ryze.health import HealthServer
from ryze.notifier import ChatBackend
from ryze.rss_parser import FeedParser
from ryze.scheduler import PollScheduler
from ryze.telegram import TelegramBackend

logger = logging.getLogger(__name__)


def redact_proxy_url(proxy_url: str) -> str:
    """
    Redact credentials from a proxy URL for safe logging.

    Parameters
    ----------
    proxy_url : str
        The proxy URL potentially containing credentials.

    Returns
    -------
    str
        The proxy URL with password redacted.
    """
    try:
        parsed = urlparse(proxy_url)
        if parsed.password:
            # Reconstruct URL with redacted password
            netloc = parsed.hostname or ""
            if parsed.port:
                netloc = f"{netloc}:{parsed.port}"
            if parsed.username:
                netloc = f"{parsed.username}:****@{netloc}"
            return f"{parsed.scheme}://{netloc}{parsed.path}"
        return proxy_url
    except ValueError:
        return "<proxy url>"


def create_backend(config: AppConfig) -> ChatBackend:
    """Instantiate the chat backend selected in the configuration."""
    if config.backend == "telegram":
        return TelegramBackend(
            config.telegram,
            proxy_url=config.feed.proxy,
            init_timeout=config.feed.send_timeout,
        )
    return DiscordBackend(config.discord, login_timeout=config.feed.send_timeout)


class RyzeService:
    """
    Feed relay service.

    Wires the feed reader, freshness filter and delivery pipeline together
    for both the scheduled and the one-shot paths.
    """

    def __init__(
        self,
        config: AppConfig,
        backend: ChatBackend | None = None,
        parser: FeedParser | None = None,
    ):
        """
        Initialize the service.

        Parameters
        ----------
        config : AppConfig
            Validated application configuration.
        backend : ChatBackend | None
            Chat backend, built from the configuration when omitted.
        parser : FeedParser | None
            Feed reader, built from the configuration when omitted.
        """
        self.config = config
        self.backend = backend or create_backend(config)
        self.parser = parser or FeedParser(
            timeout=config.feed.request_timeout,
            user_agent=config.feed.user_agent,
            proxy_url=config.feed.proxy,
        )
        self.scheduler = PollScheduler(self.poll_cycle, interval=config.feed.poll_interval)
        self.health = HealthServer(config.http.host, config.http.port)
        self._stopped: asyncio.Event | None = None

    async def _deliver(self, items) -> int:
        return await deliver(
            items,
            self.backend,
            self.config.channel,
            send_timeout=self.config.feed.send_timeout,
        )

    async def check_feed(self) -> int:
        """
        Deliver the items published since the previous poll.

        Returns
        -------
        int
            Number of delivered items.

        Raises
        ------
        RyzeError
            If fetching or delivery fails.
        """
        feed = self.config.feed
        items = await self.parser.fetch_items(feed.url, feed.poll_limit)

        fresh = select_fresh(
            items,
            datetime.now(timezone.utc),
            timedelta(seconds=feed.freshness_window),
        )
        if not fresh:
            logger.debug("No new items in %s", feed.url)
            return 0

        logger.info("Found %d new item(s) in %s", len(fresh), feed.url)
        return await self._deliver(fresh)

    async def poll_cycle(self) -> None:
        """Run one scheduled cycle, logging failures instead of raising."""
        try:
            await self.check_feed()
        except DeliveryError as e:
            logger.error("%s (%d item(s) delivered)", e.message, e.delivered)
        except RyzeError as e:
            logger.error("Poll cycle abandoned: %s", e.message)

    async def notify_last(self, n: int) -> int:
        """
        Deliver the ``n`` most recent items, fresh or not.

        Parameters
        ----------
        n : int
            Number of items to deliver.

        Returns
        -------
        int
            Number of delivered items.
        """
        items = await self.parser.fetch_items(self.config.feed.url, n)
        return await self._deliver(items)

    async def start(self) -> None:
        """Start the scheduler and health check, then run until stopped."""
        logger.info("Ryze starting ...")
        self._stopped = asyncio.Event()

        if self.config.feed.proxy:
            logger.info("Using proxy: %s", redact_proxy_url(self.config.feed.proxy))

        await self.health.start()
        self.scheduler.start()
        logger.info(
            "Relaying %s to %s channel %s",
            self.config.feed.url,
            self.backend.name,
            self.config.channel,
        )

        await self._stopped.wait()

    async def stop(self) -> None:
        """Stop the service gracefully."""
        logger.info("Stopping Ryze")
        await self.scheduler.stop()
        await self.health.stop()
        await self.parser.close()
        if self._stopped is not None:
            self._stopped.set()
        logger.info("Ryze stopped")


async def run_once(config: AppConfig, n: int) -> int:
    """
    Run the one-shot notifier.

    Returns
    -------
    int
        Process exit code.
    """
    service = RyzeService(config)
    try:
        delivered = await service.notify_last(n)
    except DeliveryError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        print(f"{e.delivered} of {n} item(s) delivered before the failure", file=sys.stderr)
        return e.exit_code
    except RyzeError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        print(f"0 of {n} item(s) delivered", file=sys.stderr)
        return e.exit_code
    finally:
        await service.parser.close()

    print(f"Delivered {delivered} item(s) to {service.backend.name} channel {config.channel}")
    return 0


def setup_logging(verbose: bool = False) -> None:
    """
    Configure application logging.

    Parameters
    ----------
    verbose : bool
        If True, set log level to DEBUG.
    """
    level = logging.DEBUG if verbose else logging.INFO

    coloredlogs.install(
        level=level,
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    logging.getLogger("discord").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("telegram").setLevel(logging.WARNING)


def positive_int(value: str) -> int:
    """Argparse type accepting integers greater than zero."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be greater than 0, got {number}")
    return number


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="ryze",
        description="Relay League of Legends news to a chat channel",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "-v",
        "--version",
        action="store_true",
        help="Print the version of the application and exit",
    )
    parser.add_argument(
        "-notif-news-off",
        "--notif-news-off",
        dest="notif_news_off",
        type=positive_int,
        metavar="N",
        help="Send the N last news items from the official site and exit",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Optional YAML configuration file (RYZE_* variables take precedence)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = build_arg_parser().parse_args(argv)

    if args.version:
        print(f"Version: {__version__}")
        print(f"Commit: {os.environ.get('RYZE_GIT_COMMIT', __commit__)}")
        sys.exit(0)

    setup_logging(args.debug)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error("%s", e.message)
        sys.exit(e.exit_code)

    if args.notif_news_off:
        sys.exit(asyncio.run(run_once(config, args.notif_news_off)))

    service = RyzeService(config)

    # Setup signal handlers for graceful shutdown
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def signal_handler():
        logger.info("Received shutdown signal")
        asyncio.create_task(service.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    try:
        loop.run_until_complete(service.start())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        loop.run_until_complete(service.stop())
        loop.close()


if __name__ == "__main__":
    main()
