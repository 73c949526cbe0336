"""The subscription list: feeds, lookup indices, bookmarks and persistence."""

import json
import logging
import threading
import time
from collections.abc import Callable, Iterator

import yaml

from rssr.errors import (
    ConfigError,
    NoBookmarkFeedError,
    NoCategoryGivenError,
    NoFeedsInListError,
    SnapshotError,
)
from rssr.feed import COOLDOWN_SECONDS, Feed
from rssr.feed_parser import fetch_and_parse
from rssr.models import FeedDocument, Item
from rssr.refresh import FeedResult, update_feeds

logger = logging.getLogger(__name__)

BOOKMARKS_URL = "Bookmarks"


class FeedList:
    """All subscribed feeds plus the Bookmarks pseudo-feed.

    Indices are owned by the list and only mutated through its methods.
    ``lock`` serializes per-item state changes (read, bookmark, logical
    timestamp) between the interactive path and sync application.
    """

    def __init__(
        self,
        fetcher: Callable[[str], FeedDocument] = fetch_and_parse,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], int] = time.time_ns,
        cooldown: float = COOLDOWN_SECONDS,
    ):
        self.fetcher = fetcher
        self.clock = clock
        self.wall_clock = wall_clock
        self.cooldown = cooldown
        self.lock = threading.RLock()
        self.ts = 0

        bookmarks = Feed(url=BOOKMARKS_URL, fetcher=fetcher, clock=clock)
        self.feeds: list[Feed] = [bookmarks]
        self.feed_index: dict[str, Feed] = {BOOKMARKS_URL: bookmarks}
        self.category_index: dict[str, list[Feed]] = {}
        self.item_index: dict[str, Item] = {}

    # --- Lookups ---

    @property
    def subscriptions(self) -> list[Feed]:
        """Every feed except the Bookmarks pseudo-feed."""
        return [feed for feed in self.feeds if feed.url != BOOKMARKS_URL]

    def bookmarks(self) -> Feed | None:
        return self.feed_index.get(BOOKMARKS_URL)

    def categories(self) -> list[str]:
        return sorted(self.category_index)

    def get_category(self, category: str) -> list[Feed]:
        """Feeds filed under a category; empty when the category is unknown.

        Raises:
            NoCategoryGivenError: If ``category`` is empty.
        """
        if not category:
            raise NoCategoryGivenError("No category given")
        return list(self.category_index.get(category, []))

    def find_feed(self, url: str) -> Feed | None:
        return self.feed_index.get(url)

    def find_item(self, key: str) -> Item | None:
        return self.item_index.get(key)

    # --- Structure ---

    def add(self, *feeds: Feed) -> int:
        """Index feeds by URL and category. Already indexed URLs are skipped."""
        added = 0
        for feed in feeds:
            if feed.url in self.feed_index:
                existing = self.feed_index[feed.url]
                if existing.category != feed.category:
                    logger.warning(
                        "Feed '%s' already listed under '%s', ignoring category '%s'",
                        feed.url, existing.category, feed.category,
                    )
                continue
            self.feed_index[feed.url] = feed
            if feed.category:
                self.category_index.setdefault(feed.category, []).append(feed)
            self.feeds.append(feed)
            added += 1
        return added

    def load_from_configuration(self, source: str | bytes) -> int:
        """Create feeds from a YAML mapping of category to URL list.

        Loading again accumulates: URLs already in the list are left alone.

        Returns:
            Number of feeds added.

        Raises:
            ConfigError: If the document is not a category -> URLs mapping.
                The list is left unchanged.
        """
        try:
            raw = yaml.safe_load(source)
        except yaml.YAMLError as e:
            raise ConfigError(f"Could not parse feed configuration: {e}") from e

        if raw is None:
            return 0
        if not isinstance(raw, dict):
            raise ConfigError("Feed configuration must map categories to URL lists")

        pending: list[Feed] = []
        for category, urls in raw.items():
            if category is None:
                category = ""
            if not isinstance(category, str):
                raise ConfigError(f"Category must be a string, got {category!r}")
            if urls is None:
                continue
            if not isinstance(urls, list) or not all(isinstance(u, str) for u in urls):
                raise ConfigError(f"Category '{category}' must list feed URLs")
            for url in urls:
                if url == BOOKMARKS_URL:
                    logger.warning("Ignoring reserved feed URL '%s'", url)
                    continue
                pending.append(
                    Feed(url=url, category=category, fetcher=self.fetcher, clock=self.clock)
                )

        added = self.add(*pending)
        logger.info("Loaded %d feeds from configuration", added)
        return added

    def reindex(self) -> None:
        """Rebuild the identity index from every feed's items."""
        with self.lock:
            index: dict[str, Item] = {}
            for feed in self.feeds:
                for item in feed.items:
                    index[item.key] = item
            self.item_index = index

    # --- Item state ---

    def set_bookmark(self, item: Item, value: bool) -> None:
        """Set an item's bookmark flag and keep Bookmarks membership in step.

        Raises:
            NoBookmarkFeedError: If the Bookmarks feed is missing.
        """
        bookmarks = self.bookmarks()
        if bookmarks is None:
            raise NoBookmarkFeedError("No bookmark feed found")

        with self.lock:
            item.bookmark = value
            idx = bookmarks.index_of(item)
            if value and idx == -1:
                bookmarks.items.append(item)
            elif not value and idx != -1:
                del bookmarks.items[idx]

    def toggle_bookmark(self, item: Item) -> bool:
        """Flip an item's bookmark flag. Returns whether it is now bookmarked."""
        with self.lock:
            self.set_bookmark(item, not item.bookmark)
            item.last_changed = self.wall_clock()
            return item.bookmark

    def toggle_read(self, item: Item) -> bool:
        with self.lock:
            item.toggle_read(self.wall_clock())
            return item.read

    def mark_read(self, item: Item) -> None:
        with self.lock:
            item.mark_read(self.wall_clock())

    def mark_all_read(self) -> None:
        with self.lock:
            ts = self.wall_clock()
            for feed in self.feeds:
                feed.mark_all_read(ts)

    # --- Refresh ---

    def refresh_all(self) -> Iterator[FeedResult]:
        """Refresh every subscribed feed. See :meth:`refresh`."""
        return self.refresh(*self.subscriptions)

    def refresh(self, *feeds: Feed) -> Iterator[FeedResult]:
        """Refresh feeds concurrently, yielding results as they complete.

        The identity index is rebuilt here, in the consuming thread, after
        each refresh that added items and once more when the batch drains.

        Raises:
            NoFeedsInListError: If no feeds are given.
        """
        results = update_feeds(feeds, cooldown=self.cooldown)
        return self._consume(results)

    def _consume(self, results: Iterator[FeedResult]) -> Iterator[FeedResult]:
        try:
            for result in results:
                if result.ok and result.new_items:
                    self.reindex()
                yield result
        finally:
            # Once more after the batch, so the index covers every feed as it
            # stands when the last worker is done.
            self.reindex()

    # --- Persistence ---

    def serialize(self, now: int | None = None) -> bytes:
        """Snapshot every subscribed feed as UTF-8 JSON."""
        with self.lock:
            self.ts = now if now is not None else self.wall_clock()
            snapshot = {
                "ts": self.ts,
                "feeds": [feed.to_dict() for feed in self.subscriptions],
            }
            return json.dumps(snapshot).encode("utf-8")

    def restore(self, data: bytes | str) -> None:
        """Overlay a snapshot onto the feeds already in the list.

        Feeds are matched by URL; snapshot feeds not in the list are ignored
        and feeds missing from the snapshot are untouched.

        Raises:
            SnapshotError: If the snapshot is malformed. Nothing is applied.
        """
        try:
            raw = json.loads(data)
            if not isinstance(raw, dict):
                raise TypeError("snapshot must be an object")
            stored_feeds = raw.get("feeds") or []
            if not isinstance(stored_feeds, list):
                raise TypeError("snapshot feeds must be a list")
            stored = [Feed.from_dict(feed) for feed in stored_feeds]
            ts = int(raw.get("ts") or 0)
        except (ValueError, KeyError, TypeError) as e:
            raise SnapshotError(f"Could not parse snapshot: {e}") from e

        with self.lock:
            for stored_feed in stored:
                if stored_feed.url == BOOKMARKS_URL:
                    continue
                feed = self.feed_index.get(stored_feed.url)
                if feed is None:
                    logger.debug("Snapshot feed '%s' is no longer configured", stored_feed.url)
                    continue
                feed.error = stored_feed.error
                if stored_feed.document is not None:
                    feed.document = stored_feed.document
                feed.overlay(stored_feed.items)

            self.ts = ts
            self.reindex()
            self._rebuild_bookmarks()

    def _rebuild_bookmarks(self) -> None:
        bookmarks = self.bookmarks()
        if bookmarks is None:
            return
        members = [item for item in bookmarks.items if item.bookmark]
        present = {item.key for item in members}
        for feed in self.subscriptions:
            for item in feed.items:
                if item.bookmark and item.key not in present:
                    members.append(item)
                    present.add(item.key)
        bookmarks.items = members
