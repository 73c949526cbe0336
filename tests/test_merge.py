"""Tests for entry identity and merging."""

from rssr.merge import identity_key, merge_items


def test_identity_prefers_guid(make_entry):
    assert identity_key(make_entry("a", link="https://example.com/other")) == "a"


def test_identity_falls_back_to_link(make_entry):
    assert identity_key(make_entry("", link="https://example.com/x")) == "https://example.com/x"


def test_merge_appends_new_items(make_entry):
    items = merge_items([], [make_entry("a", 10), make_entry("b", 20)])

    assert [item.key for item in items] == ["a", "b"]
    assert all(not item.read and not item.bookmark for item in items)


def test_merge_is_idempotent(make_entry):
    entries = [make_entry("a", 10), make_entry("b", 20)]
    items = merge_items([], entries)
    items[0].read = True
    items[1].bookmark = True

    again = merge_items(items, entries)

    assert len(again) == 2
    assert again[0] is items[0] and again[0].read
    assert again[1] is items[1] and again[1].bookmark


def test_merge_keeps_first_seen_content(make_entry):
    items = merge_items([], [make_entry("a", 10, title="Original")])

    items = merge_items(items, [make_entry("a", 10, title="Edited")])

    assert len(items) == 1
    assert items[0].title == "Original"


def test_merge_does_not_mutate_existing_list(make_entry):
    existing = merge_items([], [make_entry("a", 10)])

    merged = merge_items(existing, [make_entry("b", 20)])

    assert len(existing) == 1
    assert len(merged) == 2


def test_merge_deduplicates_within_batch(make_entry):
    items = merge_items([], [make_entry("a", 10), make_entry("a", 10)])

    assert len(items) == 1


def test_merge_skips_entries_without_identity(make_entry):
    items = merge_items([], [make_entry("", None, link="")])

    assert items == []


def test_merge_sanitizes_text(make_entry):
    entry = make_entry(
        "a",
        10,
        title="<b>Bold</b>  title",
        description="Some &amp; <i>more</i>",
        content='<p>See <a href="https://example.com/y">here</a></p>',
        enclosures=["https://example.com/a.mp3", "not a url"],
    )

    item = merge_items([], [entry])[0]

    assert item.title == "Bold title"
    assert item.description == "Some & more"
    assert item.content == "See [here](https://example.com/y)"
    assert item.enclosures == ["https://example.com/a.mp3"]
