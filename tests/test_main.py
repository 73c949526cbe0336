"""Tests for the chat front end's local commands."""

import pytest

from rssr import tools
from rssr.__main__ import HELP, run_command
from rssr.config import Settings
from rssr.feed_list import FeedList

FEED_URL = "https://example.com/feed.xml"


@pytest.fixture
def feed_list(fetcher, clock, make_document, tmp_path):
    fetcher.documents[FEED_URL] = make_document(("a", 10), ("b", 20))
    feed_list = FeedList(fetcher=fetcher, clock=clock)
    feed_list.load_from_configuration(f"News:\n  - {FEED_URL}\n  - https://down.example/rss\n")
    tools.set_feed_list(feed_list, Settings(config_path=tmp_path / "urls.yaml"))
    yield feed_list
    tools.set_feed_list(None)


def test_refresh_command(feed_list):
    assert run_command(" /Refresh ") == "2 new items (1 feeds skipped or failed)"


def test_feeds_command(feed_list):
    run_command("/refresh")

    lines = run_command("/feeds").splitlines()

    assert lines[0] == "+ Test Feed: Item b"
    assert lines[1].startswith("https://down.example/rss: no route")


def test_command_errors_are_reported(feed_list):
    assert run_command("/sync") == "Error: Sync is not configured. Set RSSR_SYNC_URL."

    tools.set_feed_list(FeedList())
    assert run_command("/refresh") == "Error: No feeds in list"


def test_help_and_unknown_commands(feed_list):
    assert run_command("/help") == HELP
    assert run_command("/nope") is None
    assert run_command("what's new?") is None
