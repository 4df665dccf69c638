"""
Shared fixtures for Cyber News Bot tests.

Provides common test fixtures for use across all test modules.
"""

from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

from cyber_news_bot.config import AppConfig, FeedSource
from cyber_news_bot.filters import FeedItem
from cyber_news_bot.storage import SeenStore


# Path to test fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"

WEBHOOK_URL = "https://discord.example.com/api/webhooks/123/abc"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def sample_rss_content(fixtures_dir: Path) -> str:
    """Return contents of sample RSS feed (3 linked entries, 1 without link)."""
    return (fixtures_dir / "sample_rss.xml").read_text()


@pytest.fixture
def sample_atom_content(fixtures_dir: Path) -> str:
    """Return contents of sample Atom feed (2 entries)."""
    return (fixtures_dir / "sample_atom.xml").read_text()


@pytest.fixture
def en_source() -> FeedSource:
    """Create an English feed source."""
    return FeedSource(name="Test Feed", language="EN", url="https://example.com/feed.xml")


@pytest.fixture
def pt_source() -> FeedSource:
    """Create a Brazilian Portuguese feed source."""
    return FeedSource(name="Fonte BR", language="PT-BR", url="https://example.com.br/rss")


@pytest.fixture
def make_item() -> Callable[..., FeedItem]:
    """
    Return a factory for FeedItem instances.

    Returns
    -------
    Callable[..., FeedItem]
        Factory taking a slug and optional field overrides.
    """

    def factory(slug: str, published: datetime | None = None, **kwargs: Any) -> FeedItem:
        link = kwargs.pop("link", f"https://example.com/{slug}")
        fields = {
            "source": "Test Feed",
            "language": "EN",
            "title": f"Malware report {slug}",
            "link": link,
            "key": link,
            "published": published,
            "snippet": "",
        }
        fields.update(kwargs)
        return FeedItem(**fields)

    return factory


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    """Return a not yet existing state directory."""
    return tmp_path / "state"


@pytest.fixture
def store(state_dir: Path) -> SeenStore:
    """Create a seen store in a temporary directory."""
    return SeenStore(state_dir)


@pytest.fixture
def app_config(state_dir: Path, en_source: FeedSource) -> AppConfig:
    """Create an app configuration with a single feed."""
    return AppConfig(
        webhook_url=WEBHOOK_URL,
        state_dir=state_dir,
        feeds=(en_source,),
    )


@pytest.fixture
def feedparser_entry() -> dict[str, Any]:
    """
    Create a sample feedparser entry dictionary.

    Returns
    -------
    dict
        A dictionary mimicking feedparser entry structure.
    """
    return {
        "title": "Zero-day in popular VPN",
        "link": "https://example.com/vpn-zero-day/?utm_campaign=feed#top",
        "id": "https://example.com/?p=42",
        "summary": "<p>Patch <em>now</em>.</p>",
        "content": [{"value": "Full article content"}],
        "published": "Tue, 02 Jan 2024 12:00:00 GMT",
    }
