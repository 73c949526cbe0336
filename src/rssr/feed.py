"""A subscribed feed: its fetched document, merged items and navigation."""

import logging
import threading
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field, replace

from rssr.errors import CooldownError, NoURLError
from rssr.feed_parser import fetch_and_parse
from rssr.merge import merge_items
from rssr.models import FeedDocument, Item, is_valid_url
from rssr.text import clean

logger = logging.getLogger(__name__)

COOLDOWN_SECONDS = 5.0
UNREAD_MARKER = "+ "
MSG_FEED_NOT_LOADED = "Feed not loaded yet. Refresh to load it."


@dataclass(eq=False)
class Feed:
    """One subscribed source and the items merged from it so far.

    ``fetcher`` is the parser collaborator (``url -> FeedDocument``) and
    ``clock`` a monotonic clock in seconds used for the refresh cooldown.
    """

    url: str
    category: str = ""
    error: str = ""
    document: FeedDocument | None = None
    items: list[Item] = field(default_factory=list)
    last_attempt: float | None = None
    fetcher: Callable[[str], FeedDocument] = field(default=fetch_and_parse, repr=False)
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    # --- Refresh ---

    def refresh(self) -> int:
        """Fetch the source and merge unseen entries.

        Returns:
            Number of new items.

        Raises:
            NoURLError: If the feed has no source URL.
            Exception: Whatever the fetcher raised; the message is also
                stored in ``error`` and existing items are left untouched.
        """
        if not self.url:
            raise NoURLError("Feed has no URL")

        try:
            document = self.fetcher(self.url)
        except Exception as e:
            self.error = str(e)
            raise

        document = replace(
            document,
            title=clean(document.title),
            description=clean(document.description),
        )

        # Other threads read self.items; only publish a complete, sorted list.
        before = self.items
        items = sorted_by_date(merge_items(before, document.entries))
        self.document = document
        self.items = items
        self.error = ""
        return len(items) - len(before)

    def refresh_if_due(self, cooldown: float = COOLDOWN_SECONDS) -> int:
        """Refresh unless a refresh is in flight or happened within ``cooldown``.

        The attempt is stamped when it is dispatched, not when it completes.

        Raises:
            CooldownError: Without touching the feed's error, document or items.
        """
        if not self._lock.acquire(blocking=False):
            raise CooldownError("5 second cooldown")
        try:
            now = self.clock()
            if self.last_attempt is not None and now - self.last_attempt < cooldown:
                raise CooldownError("5 second cooldown")
            self.last_attempt = now
            return self.refresh()
        finally:
            self._lock.release()

    def sort_by_date(self) -> None:
        self.items = sorted_by_date(self.items)

    # --- Queries ---

    def has_unread(self) -> bool:
        return any(not item.read for item in self.items)

    def unread_count(self) -> int:
        return sum(1 for item in self.items if not item.read)

    def mark_all_read(self, ts: int | None = None) -> None:
        for item in self.items:
            item.mark_read(ts)

    def display_title(self) -> str:
        """Source title (or URL), prefixed with an unread marker."""
        if self.document is None or not self.document.title:
            title = self.url
        else:
            title = self.document.title

        if self.has_unread():
            return f"{UNREAD_MARKER}{title}"
        return title

    def latest_summary(self) -> str:
        """One line describing the feed's current state.

        The first of: the stored error, the newest unread item's title, the
        newest item's title, the source description, a not-loaded notice.
        """
        if self.error:
            return self.error

        if self.items:
            for item in self.items:
                if not item.read:
                    return item.title
            return self.items[0].title

        if self.document is not None:
            return self.document.description

        return MSG_FEED_NOT_LOADED

    def link(self) -> str:
        """The site link of the source, falling back to the feed URL."""
        raw = self.url
        if self.document is not None:
            raw = self.document.link or self.document.feed_link or self.url
        return raw if is_valid_url(raw) else self.url

    # --- Navigation ---

    def index_of(self, item: Item | None) -> int:
        """Position of an item, matched by identity key; -1 when absent."""
        if item is None:
            return -1
        for i, candidate in enumerate(self.items):
            if candidate.key == item.key:
                return i
        return -1

    def next_after(self, current: Item | None) -> tuple[int, Item | None]:
        i = self.index_of(current)
        if i == -1 or i + 1 >= len(self.items):
            return -1, None
        return i + 1, self.items[i + 1]

    def prev_before(self, current: Item | None) -> tuple[int, Item | None]:
        i = self.index_of(current)
        if i <= 0:
            return -1, None
        return i - 1, self.items[i - 1]

    def next_unread(self, current: Item | None) -> tuple[int, Item | None]:
        """Next item after ``current`` that is unread or bookmarked."""
        i = self.index_of(current)
        if i == -1:
            return -1, None
        for j in range(i + 1, len(self.items)):
            if _is_interesting(self.items[j]):
                return j, self.items[j]
        return -1, None

    def prev_unread(self, current: Item | None) -> tuple[int, Item | None]:
        """Previous item before ``current`` that is unread or bookmarked."""
        i = self.index_of(current)
        if i == -1:
            return -1, None
        for j in range(i - 1, -1, -1):
            if _is_interesting(self.items[j]):
                return j, self.items[j]
        return -1, None

    # --- Persistence ---

    def overlay(self, stored: Iterable[Item]) -> None:
        """Apply items restored from a snapshot onto this feed.

        Known items take the stored read/bookmark/last_changed state, unknown
        ones are appended. Applying the same items twice changes nothing.
        """
        items = list(self.items)
        by_key = {item.key: item for item in items}
        for item in stored:
            current = by_key.get(item.key)
            if current is None:
                items.append(item)
                by_key[item.key] = item
                continue
            current.read = item.read
            current.bookmark = item.bookmark
            current.last_changed = item.last_changed
        self.items = sorted_by_date(items)

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "category": self.category,
            "error": self.error,
            "document": self.document.to_dict() if self.document else None,
            "items": [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Feed":
        """Build a detached feed from its snapshot form.

        Raises:
            KeyError, TypeError, ValueError: If the data is malformed.
        """
        url = data["url"]
        if not isinstance(url, str):
            raise TypeError("feed url must be a string")
        document = data.get("document")
        if document is not None and not isinstance(document, dict):
            raise TypeError("feed document must be an object")
        items = data.get("items") or []
        if not isinstance(items, list):
            raise TypeError("feed items must be a list")
        return cls(
            url=url,
            category=str(data.get("category") or ""),
            error=str(data.get("error") or ""),
            document=FeedDocument.from_dict(document) if document is not None else None,
            items=[Item.from_dict(item) for item in items],
        )


def sorted_by_date(items: Iterable[Item]) -> list[Item]:
    """New list, newest first; undated items last in their existing order."""

    def sort_key(item: Item):
        ts = item.timestamp()
        if ts is None:
            return (1, 0.0)
        return (0, -ts.timestamp())

    return sorted(items, key=sort_key)


def _is_interesting(item: Item) -> bool:
    return not item.read or item.bookmark


def next_unread_feed(feeds: Sequence[Feed], current: Feed | None) -> tuple[int, Feed | None]:
    """Next feed after ``current`` that has unread items."""
    i = _feed_index(feeds, current)
    if i == -1:
        return -1, None
    for j in range(i + 1, len(feeds)):
        if feeds[j].has_unread():
            return j, feeds[j]
    return -1, None


def prev_unread_feed(feeds: Sequence[Feed], current: Feed | None) -> tuple[int, Feed | None]:
    """Previous feed before ``current`` that has unread items."""
    i = _feed_index(feeds, current)
    if i == -1:
        return -1, None
    for j in range(i - 1, -1, -1):
        if feeds[j].has_unread():
            return j, feeds[j]
    return -1, None


def mark_feeds_read(*feeds: Feed, ts: int | None = None) -> None:
    for feed in feeds:
        feed.mark_all_read(ts)


def _feed_index(feeds: Sequence[Feed], current: Feed | None) -> int:
    if current is None:
        return -1
    for i, feed in enumerate(feeds):
        if feed.url == current.url:
            return i
    return -1
