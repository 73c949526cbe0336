"""RSS/Atom feed fetching and parsing using feedparser."""

from datetime import datetime, timezone
from time import struct_time
from urllib.parse import urlparse

import feedparser

from rssr.errors import RssrError
from rssr.models import Entry, FeedDocument

USER_AGENT = "rssr/0.1 (RSS Feed Reader)"


class FeedParseError(RssrError):
    """Raised when a feed cannot be fetched or parsed."""


def fetch_and_parse(url: str) -> FeedDocument:
    """Fetch and parse an RSS or Atom feed from a URL.

    Args:
        url: The feed URL to fetch and parse.

    Returns:
        FeedDocument with feed metadata and entries in document order.

    Raises:
        FeedParseError: If the URL is invalid, unreachable, or not a valid feed.
    """
    _validate_url(url)

    parsed = feedparser.parse(url, agent=USER_AGENT)

    if parsed.get("status", 200) in (401, 403):
        raise FeedParseError(
            "Feed requires authentication. Ensure the URL is publicly accessible."
        )

    if parsed.get("status", 200) >= 400:
        raise FeedParseError(
            f"Could not reach URL: HTTP {parsed.get('status', 'unknown')}"
        )

    if not parsed.feed.get("title") and not parsed.entries:
        if parsed.bozo and parsed.bozo_exception:
            raise FeedParseError(f"Could not parse feed: {parsed.bozo_exception}")
        raise FeedParseError("URL does not point to a valid RSS or Atom feed")

    return to_document(parsed)


def to_document(parsed) -> FeedDocument:
    """Convert a feedparser result into a FeedDocument."""
    return FeedDocument(
        title=parsed.feed.get("title", ""),
        description=parsed.feed.get("description") or parsed.feed.get("subtitle") or "",
        link=parsed.feed.get("link", ""),
        feed_link=_self_link(parsed.feed),
        entries=[_to_entry(entry) for entry in parsed.entries],
    )


def _validate_url(url: str) -> None:
    """Validate that the URL has a valid format."""
    try:
        result = urlparse(url)
        if not result.scheme or not result.netloc:
            raise FeedParseError("Invalid URL format")
        if result.scheme not in ("http", "https"):
            raise FeedParseError("Invalid URL format: only http and https are supported")
    except ValueError:
        raise FeedParseError("Invalid URL format")


def _self_link(feed: dict) -> str:
    for link in feed.get("links", []):
        if link.get("rel") == "self" and link.get("href"):
            return link["href"]
    return ""


def _to_entry(entry: dict) -> Entry:
    content = ""
    for part in entry.get("content", []):
        if part.get("value"):
            content = part["value"]
            break

    return Entry(
        title=entry.get("title", ""),
        link=entry.get("link", ""),
        enclosures=[
            enc["href"] for enc in entry.get("enclosures", []) if enc.get("href")
        ],
        guid=entry.get("id", ""),
        description=entry.get("summary") or entry.get("description") or "",
        content=content,
        published=_parse_date(entry.get("published_parsed")),
        updated=_parse_date(entry.get("updated_parsed")),
    )


def _parse_date(time_struct) -> datetime | None:
    """Convert a feedparser UTC time struct into an aware datetime."""
    if not isinstance(time_struct, (struct_time, tuple)):
        return None
    try:
        return datetime(*time_struct[:6], tzinfo=timezone.utc)
    except (ValueError, TypeError, OverflowError):
        return None
