"""Identity and merge of fetched entries into a feed's item collection."""

import logging
from collections.abc import Iterable
from dataclasses import replace

from rssr.models import Entry, Item, is_valid_url
from rssr.text import clean, to_display_format

logger = logging.getLogger(__name__)


def identity_key(entry: Entry) -> str:
    """The entry's guid if set, else its link."""
    return entry.guid or entry.link or ""


def sanitize_entry(entry: Entry) -> Entry:
    """Return a copy of the entry with display-safe text fields."""
    return replace(
        entry,
        title=clean(entry.title),
        description=clean(entry.description),
        content=to_display_format(entry.content),
        enclosures=[url for url in entry.enclosures if is_valid_url(url)],
    )


def merge_items(existing: list[Item], entries: Iterable[Entry]) -> list[Item]:
    """Append entries with unseen identities to an item collection.

    Existing items are neither modified nor reordered, so their read and
    bookmark state survives every refresh. Returns a new list.
    """
    seen = {item.key for item in existing}
    merged = list(existing)

    for entry in entries:
        key = identity_key(entry)
        if not key:
            logger.debug("Skipping entry with no identifier: %s", entry.title)
            continue
        if key in seen:
            continue

        clean_entry = sanitize_entry(entry)
        merged.append(
            Item(
                key=key,
                title=clean_entry.title,
                link=clean_entry.link,
                enclosures=clean_entry.enclosures,
                description=clean_entry.description,
                content=clean_entry.content,
                published=clean_entry.published,
                updated=clean_entry.updated,
            )
        )
        seen.add(key)

    return merged
