"""Tests for item helpers."""

import pytest

from conftest import ts
from rssr.models import Item


def test_display_title_markers():
    item = Item(key="a", title="Title")
    assert item.display_title() == "+ Title"

    item.bookmark = True
    assert item.display_title() == "+ * Title"

    item.read = True
    assert item.display_title() == "* Title"


def test_timestamp_rules():
    assert Item(key="a").timestamp() is None
    assert Item(key="a", published=ts(10)).timestamp() == ts(10)
    assert Item(key="a", updated=ts(10)).timestamp() == ts(10)
    assert Item(key="a", published=ts(10), updated=ts(20)).timestamp() == ts(20)
    assert Item(key="a", published=ts(10), updated=ts(5)).timestamp() == ts(10)


def test_url_falls_back_to_enclosure():
    assert Item(key="a", link="https://example.com/a").url() == "https://example.com/a"
    assert Item(key="a", enclosures=["https://example.com/a.mp3"]).url() == "https://example.com/a.mp3"
    assert Item(key="a", link="not a url").url() == ""


def test_summary_fallbacks():
    assert Item(key="a", description="d", content="c").summary() == "d"
    assert Item(key="a", content="c").summary() == "c"
    assert Item(key="a", published=ts(0)).summary() == "1970-01-01T00:00:00+00:00"
    assert Item(key="a").summary() == ""


def test_state_changes_stamp_last_changed():
    item = Item(key="a")

    item.toggle_read(ts=1)
    assert item.read and item.last_changed == 1

    item.mark_read(ts=2)
    assert item.last_changed == 1

    item.toggle_bookmark(ts=3)
    assert item.bookmark and item.last_changed == 3


def test_content_text_lists_enclosures():
    item = Item(key="a", link="https://example.com/a", content="Body",
                enclosures=["https://example.com/a.mp3"])

    text = item.content_text()

    assert "https://example.com/a\n\nBody" in text
    assert "- [0] https://example.com/a.mp3" in text


def test_dict_round_trip():
    item = Item(key="a", title="T", published=ts(10), read=True, bookmark=True, last_changed=9)

    restored = Item.from_dict(item.to_dict())

    assert restored.to_dict() == item.to_dict()


def test_filter_content_includes_markers_and_summary():
    item = Item(key="a", title="Title", description="About cats", bookmark=True)

    assert item.filter_content() == "+ * Title About cats"


@pytest.mark.parametrize(
    "field, value",
    [
        ("read", "false"),
        ("bookmark", 1),
        ("last_changed", "9"),
        ("last_changed", True),
    ],
)
def test_from_dict_rejects_mistyped_state(field, value):
    data = Item(key="a").to_dict()
    data[field] = value

    with pytest.raises(TypeError):
        Item.from_dict(data)
