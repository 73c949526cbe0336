"""Shared test fixtures for rssr tests."""

import os
import tempfile
from datetime import datetime, timezone

import pytest

from rssr.models import Entry, FeedDocument


SAMPLE_RSS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Test Feed</title>
    <link>https://example.com</link>
    <description>A test RSS feed</description>
    <item>
      <title>First Article</title>
      <link>https://example.com/article-1</link>
      <guid>article-1</guid>
      <description>Description of the &lt;b&gt;first&lt;/b&gt; article</description>
      <pubDate>Fri, 13 Feb 2026 10:00:00 GMT</pubDate>
      <enclosure url="https://example.com/audio-1.mp3" type="audio/mpeg" length="1"/>
    </item>
    <item>
      <title>Second Article</title>
      <link>https://example.com/article-2</link>
      <guid>article-2</guid>
      <description>Description of the second article</description>
      <pubDate>Fri, 13 Feb 2026 09:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>"""

SAMPLE_ATOM_XML = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Test Atom Feed</title>
  <link href="https://example.com"/>
  <link rel="self" href="https://example.com/atom.xml"/>
  <subtitle>A test Atom feed</subtitle>
  <entry>
    <title>Atom Entry 1</title>
    <link href="https://example.com/entry-1"/>
    <id>urn:uuid:entry-1</id>
    <summary>Summary of entry 1</summary>
    <updated>2026-02-13T10:00:00Z</updated>
  </entry>
</feed>"""

SAMPLE_NOT_A_FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<html>
  <body>This is not a feed</body>
</html>"""


def ts(value: int) -> datetime:
    """An aware datetime ``value`` seconds after the epoch."""
    return datetime.fromtimestamp(value, tz=timezone.utc)


class FakeFetcher:
    """Fetch collaborator serving canned documents and counting calls."""

    def __init__(self, documents: dict | None = None):
        self.documents = documents or {}
        self.calls: list[str] = []

    def __call__(self, url: str) -> FeedDocument:
        self.calls.append(url)
        result = self.documents.get(url)
        if result is None:
            raise ConnectionError(f"no route to {url}")
        if isinstance(result, Exception):
            raise result
        return result


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def make_entry():
    """Factory for entries: ``make_entry("a", 10)`` has guid "a" published at t=10."""

    def _make(guid: str = "", published: int | None = None, **fields) -> Entry:
        fields.setdefault("title", f"Item {guid or fields.get('link', '')}")
        fields.setdefault("link", f"https://example.com/{guid}" if guid else "")
        return Entry(
            guid=guid,
            published=ts(published) if published is not None else None,
            **fields,
        )

    return _make


@pytest.fixture
def make_document(make_entry):
    """Factory for documents from ``(guid, published)`` pairs."""

    def _make(*pairs, title: str = "Test Feed", description: str = "A test feed") -> FeedDocument:
        return FeedDocument(
            title=title,
            description=description,
            link="https://example.com",
            entries=[make_entry(guid, published) for guid, published in pairs],
        )

    return _make


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tmp_db_path():
    """Provide a temporary SQLite database path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = f.name
    yield path
    try:
        os.unlink(path)
    except OSError:
        pass


@pytest.fixture
def sample_rss_xml():
    """Sample valid RSS 2.0 XML."""
    return SAMPLE_RSS_XML


@pytest.fixture
def sample_atom_xml():
    """Sample valid Atom XML."""
    return SAMPLE_ATOM_XML


@pytest.fixture
def sample_not_a_feed_xml():
    """Sample XML that is not a feed."""
    return SAMPLE_NOT_A_FEED_XML
