"""
Main entry point for Cyber News Bot.

Runs one polling pass: fetch every feed, keep new relevant entries,
publish the newest ones and remember what was published.
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone
from urllib.parse import urlparse

import coloredlogs
from pydantic import ValidationError

from cyber_news_bot.config import AppConfig, load_config
from cyber_news_bot.filters import FeedItem, filter_entries
from cyber_news_bot.notifier import Notifier
from cyber_news_bot.rss_parser import FeedParser
from cyber_news_bot.storage import SeenSet, SeenStore
from cyber_news_bot.webhook import WebhookNotifier

logger = logging.getLogger(__name__)

# Sort key for entries without a publication date
OLDEST = datetime.min.replace(tzinfo=timezone.utc)


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
            netloc = parsed.hostname or ""
            if parsed.port:
                netloc = f"{netloc}:{parsed.port}"
            if parsed.username:
                netloc = f"{parsed.username}:****@{netloc}"
            return f"{parsed.scheme}://{netloc}{parsed.path}"
        return proxy_url
    except ValueError:
        return "<proxy url>"


def sort_newest_first(items: list[FeedItem]) -> list[FeedItem]:
    """Sort items by publication date, newest first, undated items last."""
    return sorted(items, key=lambda item: item.published or OLDEST, reverse=True)


def select_candidates(
    items: list[FeedItem], seen: SeenSet, limit: int
) -> list[FeedItem]:
    """
    Pick the items to publish in this run.

    Parameters
    ----------
    items : list[FeedItem]
        All items fetched in this run.
    seen : SeenSet
        Identity keys published in earlier runs.
    limit : int
        Maximum number of items to return.

    Returns
    -------
    list[FeedItem]
        At most ``limit`` new relevant items, newest first.
    """
    return sort_newest_first(filter_entries(items, seen))[:limit]


class CyberNewsBot:
    """
    Main application.

    Coordinates feed fetching, filtering, storage, and notifications
    for a single run.
    """

    def __init__(
        self,
        config: AppConfig,
        parser: FeedParser | None = None,
        notifier: Notifier | None = None,
        store: SeenStore | None = None,
    ):
        """
        Initialize the bot.

        Parameters
        ----------
        config : AppConfig
            Validated application configuration.
        parser : FeedParser | None
            Feed fetcher; built from the configuration if omitted.
        notifier : Notifier | None
            Notification backend; a WebhookNotifier if omitted.
        store : SeenStore | None
            Seen-key store; uses ``config.state_dir`` if omitted.
        """
        self.config = config
        self.parser = parser or FeedParser(
            timeout=config.request_timeout,
            user_agent=config.user_agent,
            proxy_url=config.proxy,
        )
        self.notifier = notifier or WebhookNotifier(
            config.webhook_url,
            text_field=config.webhook_text_field,
            timeout=config.request_timeout,
            user_agent=config.user_agent,
            proxy_url=config.proxy,
        )
        self.store = store or SeenStore(config.state_dir)

    async def run(self) -> int:
        """
        Run one polling pass and release resources.

        Returns
        -------
        int
            Number of entries published.
        """
        try:
            return await self._run_once()
        finally:
            await self.close()

    async def _run_once(self) -> int:
        """
        Fetch, select and publish entries.

        Returns
        -------
        int
            Number of entries published.

        Raises
        ------
        Exception
            Delivery or state write failures, after the seen keys of the
            entries already published have been saved.
        """
        if self.config.proxy:
            logger.info("Using proxy: %s", redact_proxy_url(self.config.proxy))

        loaded = self.store.load()
        seen = loaded.keys
        logger.info(
            "Loaded %d seen entr%s (%s)",
            len(seen),
            "y" if len(seen) == 1 else "ies",
            loaded.status.value,
        )

        results = await self.parser.fetch_all(self.config.feeds)
        failed = [r.source.name for r in results if not r.ok]
        if failed:
            logger.warning("%d feed(s) failed: %s", len(failed), ", ".join(failed))

        items = [item for result in results for item in result.items]
        to_post = select_candidates(items, seen, self.config.max_posts_per_run)

        if not to_post:
            logger.info("No new items")
            return 0

        sent = 0
        try:
            for item in to_post:
                await self.notifier.send_item(item)
                seen.add(item.key)
                sent += 1
        finally:
            self.store.save(seen)

        logger.info("Posted %d new entr%s", sent, "y" if sent == 1 else "ies")
        return sent

    async def close(self) -> None:
        """Close network components."""
        await self.parser.close()
        await self.notifier.close()


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
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Post new cybersecurity headlines from RSS feeds to a webhook",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        config = load_config()
    except ValidationError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)

    bot = CyberNewsBot(config)

    try:
        asyncio.run(bot.run())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error("Run failed: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
