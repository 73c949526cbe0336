"""Tests for feed fetching and parsing."""

from datetime import datetime, timezone

import feedparser
import pytest

from rssr import feed_parser
from rssr.feed_parser import FeedParseError, fetch_and_parse


@pytest.fixture
def serve(monkeypatch):
    """Make feedparser parse the given XML instead of fetching the URL."""
    real_parse = feedparser.parse

    def _serve(xml: str):
        monkeypatch.setattr(feed_parser.feedparser, "parse", lambda url, **kw: real_parse(xml))

    return _serve


def test_rss_document(serve, sample_rss_xml):
    serve(sample_rss_xml)

    document = fetch_and_parse("https://example.com/feed.xml")

    assert document.title == "Test Feed"
    assert document.description == "A test RSS feed"
    assert document.link == "https://example.com"
    assert [e.guid for e in document.entries] == ["article-1", "article-2"]

    first = document.entries[0]
    assert first.title == "First Article"
    assert first.link == "https://example.com/article-1"
    assert first.enclosures == ["https://example.com/audio-1.mp3"]
    assert "first" in first.description
    assert first.published == datetime(2026, 2, 13, 10, 0, tzinfo=timezone.utc)


def test_atom_document(serve, sample_atom_xml):
    serve(sample_atom_xml)

    document = fetch_and_parse("https://example.com/atom.xml")

    assert document.title == "Test Atom Feed"
    assert document.description == "A test Atom feed"
    assert document.feed_link == "https://example.com/atom.xml"
    entry = document.entries[0]
    assert entry.guid == "urn:uuid:entry-1"
    assert entry.updated == datetime(2026, 2, 13, 10, 0, tzinfo=timezone.utc)


def test_not_a_feed(serve, sample_not_a_feed_xml):
    serve(sample_not_a_feed_xml)

    with pytest.raises(FeedParseError):
        fetch_and_parse("https://example.com/index.html")


@pytest.mark.parametrize("url", ["", "example.com/feed", "ftp://example.com/feed"])
def test_invalid_url(url):
    with pytest.raises(FeedParseError, match="Invalid URL format"):
        fetch_and_parse(url)


def test_http_error_status(monkeypatch):
    result = feedparser.FeedParserDict(status=404, feed=feedparser.FeedParserDict(), entries=[])
    monkeypatch.setattr(feed_parser.feedparser, "parse", lambda url, **kw: result)

    with pytest.raises(FeedParseError, match="HTTP 404"):
        fetch_and_parse("https://example.com/missing.xml")
