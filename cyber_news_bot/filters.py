"""
Feed entry normalization and relevance filtering.

Turns raw feedparser entries into immutable ``FeedItem`` records and
decides which of them are about cybersecurity.
"""

import html
import logging
import re
import time
from collections.abc import Container, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from dateutil import parser as dtparse

from cyber_news_bot.config import FeedSource
from cyber_news_bot.links import normalize_link

logger = logging.getLogger(__name__)

# Title used when an entry has none
UNTITLED = "(no title)"

# Entry fields holding a publication date, in order of preference. Already
# normalized values (isoDate, feedparser's *_parsed) come before raw strings.
DATE_FIELDS: tuple[str, ...] = (
    "isoDate",
    "published_parsed",
    "pubDate",
    "published",
    "updated_parsed",
    "updated",
)

# RFC 822 zone names python-dateutil does not resolve on its own
TZINFOS: dict[str, int] = {
    "UT": 0,
    "GMT": 0,
    "Z": 0,
    "EST": -5 * 3600,
    "EDT": -4 * 3600,
    "CST": -6 * 3600,
    "CDT": -5 * 3600,
    "MST": -7 * 3600,
    "MDT": -6 * 3600,
    "PST": -8 * 3600,
    "PDT": -7 * 3600,
}

# Lowercase keywords (English and Brazilian Portuguese)
KEYWORDS: tuple[str, ...] = (
    "cve",
    "vulnerability",
    "exploit",
    "zero-day",
    "zeroday",
    "ransomware",
    "phishing",
    "malware",
    "botnet",
    "breach",
    "leak",
    "ddos",
    "cyber",
    "hacker",
    "hack",
    "backdoor",
    "trojan",
    "spyware",
    "credential",
    "stealer",
    "apt",
    "vulnerabilidade",
    "exploração",
    "falha",
    "brecha",
    "vazamento",
    "golpe",
    "invasão",
    "ataque",
    "ciber",
    "sequestro",
    "dados",
    "credenciais",
    "roubo",
)


def parse_timestamp(value: Any) -> datetime | None:
    """
    Best-effort conversion of a feed date value to an aware datetime.

    Parameters
    ----------
    value : Any
        A date string, a ``time.struct_time`` (feedparser ``*_parsed``
        fields, always UTC) or a datetime.

    Returns
    -------
    datetime | None
        Timezone-aware datetime, or None if the value cannot be parsed.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, time.struct_time):
        try:
            dt = datetime(*value[:6])
        except (TypeError, ValueError):
            return None
    elif isinstance(value, str):
        try:
            dt = dtparse.parse(value, tzinfos=TZINFOS)
        except (ValueError, OverflowError):
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def entry_timestamp(entry: Any) -> datetime | None:
    """Return the publication date of the first date field the entry has."""
    for field_name in DATE_FIELDS:
        value = entry.get(field_name)
        if value:
            return parse_timestamp(value)
    return None


def clean_snippet(content: str) -> str:
    """
    Reduce HTML content to plain text.

    Parameters
    ----------
    content : str
        Raw content possibly containing HTML.

    Returns
    -------
    str
        Plain text with tags removed and whitespace collapsed.
    """
    text = re.sub(r"<[^>]+>", "", content)
    text = html.unescape(text)
    return re.sub(r"\s+", " ", text).strip()


@dataclass(frozen=True)
class FeedItem:
    """
    Normalized feed entry.

    Attributes
    ----------
    source : str
        Display name of the feed the entry came from.
    language : str
        Language tag of the source feed.
    title : str
        Entry title, never empty.
    link : str
        Canonical entry URL, never empty.
    key : str
        Identity key used for deduplication.
    published : datetime | None
        Publication date, None when absent or unparseable.
    snippet : str
        Plain-text summary of the entry.
    """

    source: str
    language: str
    title: str
    link: str
    key: str
    published: datetime | None = None
    snippet: str = ""

    @classmethod
    def from_feedparser(cls, entry: Any, source: FeedSource) -> "FeedItem | None":
        """
        Create a FeedItem from a feedparser entry.

        Parameters
        ----------
        entry : Any
            A feedparser entry (or any mapping with the same keys).
        source : FeedSource
            Feed the entry belongs to.

        Returns
        -------
        FeedItem | None
            The normalized item, or None if no link can be derived.
        """
        raw_link = str(entry.get("link") or "").strip()
        raw_guid = str(entry.get("guid") or entry.get("id") or "").strip()

        link = normalize_link(raw_link or raw_guid)
        if not link:
            return None

        snippet = entry.get("contentSnippet") or entry.get("summary") or ""
        if not snippet and entry.get("content"):
            snippet = entry["content"][0].get("value", "")

        return cls(
            source=source.name,
            language=source.language,
            title=str(entry.get("title") or "").strip() or UNTITLED,
            link=link,
            key=link or raw_guid or raw_link,
            published=entry_timestamp(entry),
            snippet=clean_snippet(str(snippet)),
        )


def extract_items(source: FeedSource, entries: Iterable[Any]) -> list[FeedItem]:
    """
    Normalize the entries of one feed, dropping those without a link.

    Parameters
    ----------
    source : FeedSource
        Feed the entries belong to.
    entries : Iterable[Any]
        Raw feedparser entries.

    Returns
    -------
    list[FeedItem]
        Normalized items in feed order.
    """
    items = []
    for entry in entries:
        item = FeedItem.from_feedparser(entry, source)
        if item is None:
            logger.debug("Skipping entry without link in '%s'", source.name)
            continue
        items.append(item)
    return items


def matches_keywords(
    title: str | None,
    snippet: str | None,
    keywords: Iterable[str] = KEYWORDS,
) -> bool:
    """
    Check whether an entry's text mentions any keyword.

    Matching is a case-insensitive substring test, so "hacker" also
    matches "hackerspace".

    Parameters
    ----------
    title : str | None
        Entry title.
    snippet : str | None
        Entry summary.
    keywords : Iterable[str]
        Lowercase keywords to look for.

    Returns
    -------
    bool
        True if at least one keyword occurs in the text.
    """
    text = f"{title or ''} {snippet or ''}".lower()
    return any(keyword in text for keyword in keywords)


def filter_entries(items: list[FeedItem], seen: Container[str]) -> list[FeedItem]:
    """
    Keep relevant items whose key has not been published yet.

    Items sharing a key with an earlier item in the list are dropped too.

    Parameters
    ----------
    items : list[FeedItem]
        Candidate items.
    seen : Container[str]
        Identity keys already published.

    Returns
    -------
    list[FeedItem]
        Items that pass the filter, in input order.
    """
    filtered = []
    keys: set[str] = set()
    for item in items:
        if item.key in seen or item.key in keys:
            continue
        if not matches_keywords(item.title, item.snippet):
            continue
        keys.add(item.key)
        filtered.append(item)

    logger.info(
        "Filtered %d entries down to %d",
        len(items),
        len(filtered),
    )

    return filtered
