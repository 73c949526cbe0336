"""Agent tool implementations for rssr."""

import json

from langchain_core.tools import tool

from rssr.config import Settings
from rssr.errors import RssrError
from rssr.feed import Feed
from rssr.feed_list import BOOKMARKS_URL, FeedList
from rssr.models import Item
from rssr.sync import sync_list

# Module-level list reference, set during agent initialization
_feed_list: FeedList | None = None
_settings: Settings | None = None


def set_feed_list(feed_list: FeedList, settings: Settings | None = None) -> None:
    """Set the feed list (and settings) used by all tools."""
    global _feed_list, _settings
    _feed_list = feed_list
    _settings = settings


def _get_list() -> FeedList:
    """Get the feed list, raising if not set."""
    if _feed_list is None:
        raise RuntimeError("Feed list not initialized. Call set_feed_list() first.")
    return _feed_list


def _error(message: str, **extra) -> str:
    return json.dumps({"status": "error", "message": message, **extra})


def _feed_summary(feed: Feed) -> dict:
    return {
        "title": feed.display_title(),
        "url": feed.url,
        "site": feed.link(),
        "category": feed.category,
        "unread": feed.unread_count(),
        "latest": feed.latest_summary(),
        **({"error": feed.error} if feed.error else {}),
    }


def _item_summary(item: Item) -> dict:
    ts = item.timestamp()
    return {
        "key": item.key,
        "title": item.display_title(),
        "link": item.url(),
        "summary": item.summary()[:200],
        "published_at": ts.isoformat() if ts else None,
        "is_read": item.read,
        "bookmarked": item.bookmark,
    }


@tool
def list_feeds(category: str = "") -> str:
    """List subscribed feeds with unread counts and their latest headline.

    Args:
        category: Optional category to restrict the listing to.
    """
    feed_list = _get_list()

    if category:
        try:
            feeds = feed_list.get_category(category)
        except RssrError as e:
            return _error(str(e))
    else:
        feeds = feed_list.subscriptions

    return json.dumps({
        "feeds": [_feed_summary(feed) for feed in feeds],
        "total": len(feeds),
    })


@tool
def list_categories() -> str:
    """List the categories feeds are organized under."""
    feed_list = _get_list()
    return json.dumps({"categories": feed_list.categories()})


@tool
def get_items(feed_url: str = "", unread_only: bool = False, limit: int = 20) -> str:
    """Get items of one feed, or of all feeds, newest first per feed.

    Args:
        feed_url: Optional feed URL. Use "Bookmarks" for bookmarked items.
        unread_only: If true, only return unread items.
        limit: Maximum number of items to return (default 20).
    """
    feed_list = _get_list()

    if feed_url:
        feed = feed_list.find_feed(feed_url)
        if feed is None:
            return _error(f"No feed found matching '{feed_url}'")
        items = list(feed.items)
    else:
        items = [item for feed in feed_list.subscriptions for item in feed.items]

    if unread_only:
        items = [item for item in items if not item.read]

    return json.dumps({
        "items": [_item_summary(item) for item in items[:limit]],
        "total": len(items),
        "has_more": len(items) > limit,
    })


@tool
def search_items(query: str, limit: int = 20) -> str:
    """Search item titles and summaries across all feeds.

    Args:
        query: Words to look for; every word must match (case-insensitive).
        limit: Maximum number of items to return (default 20).
    """
    feed_list = _get_list()

    words = query.lower().split()
    if not words:
        return _error("Query is empty")

    items = [
        item
        for feed in feed_list.subscriptions
        for item in feed.items
        if all(word in item.filter_content().lower() for word in words)
    ]

    return json.dumps({
        "query": query,
        "items": [_item_summary(item) for item in items[:limit]],
        "total": len(items),
        "has_more": len(items) > limit,
    })


@tool
def refresh_feeds(category: str = "") -> str:
    """Fetch new items for all feeds, or for the feeds of one category.

    Args:
        category: Optional category to refresh.
    """
    feed_list = _get_list()

    try:
        if category:
            results = feed_list.refresh(*feed_list.get_category(category))
        else:
            results = feed_list.refresh_all()
        outcome = [
            {
                "url": result.feed.url,
                "status": "ok" if result.ok else "error",
                "new_items": result.new_items,
                **({"message": str(result.error)} if result.error else {}),
            }
            for result in results
        ]
    except RssrError as e:
        return _error(str(e))

    return json.dumps({
        "status": "success",
        "feeds": outcome,
        "new_items": sum(r["new_items"] for r in outcome),
    })


@tool
def mark_as_read(item_keys: list[str] | None = None, feed_url: str = "") -> str:
    """Mark items as read, or mark every item of a feed as read.

    Args:
        item_keys: Optional list of item keys to mark as read.
        feed_url: Optional feed URL; all of its items are marked as read.
    """
    feed_list = _get_list()

    if not item_keys and not feed_url:
        return _error("Provide item_keys and/or feed_url")

    total_marked = 0

    if feed_url:
        feed = feed_list.find_feed(feed_url)
        if feed is None:
            return _error(f"No feed found matching '{feed_url}'")
        for item in feed.items:
            if not item.read:
                feed_list.mark_read(item)
                total_marked += 1

    for key in item_keys or []:
        item = feed_list.find_item(key)
        if item is not None and not item.read:
            feed_list.mark_read(item)
            total_marked += 1

    return json.dumps({"status": "success", "items_marked": total_marked})


@tool
def mark_as_unread(item_keys: list[str]) -> str:
    """Mark one or more items as unread.

    Args:
        item_keys: List of item keys to mark as unread.
    """
    feed_list = _get_list()

    marked = 0
    for key in item_keys:
        item = feed_list.find_item(key)
        if item is not None and item.read:
            feed_list.toggle_read(item)
            marked += 1

    return json.dumps({"status": "success", "items_marked": marked})


@tool
def toggle_bookmark(item_key: str) -> str:
    """Bookmark an item, or remove its bookmark if it already has one.

    Args:
        item_key: The key of the item.
    """
    feed_list = _get_list()

    item = feed_list.find_item(item_key)
    if item is None:
        return _error(f"No item found with key '{item_key}'")

    try:
        bookmarked = feed_list.toggle_bookmark(item)
    except RssrError as e:
        return _error(str(e))

    return json.dumps({
        "status": "bookmarked" if bookmarked else "unbookmarked",
        "title": item.title,
        "bookmarks": len(feed_list.find_feed(BOOKMARKS_URL).items),
    })


@tool
def sync_state() -> str:
    """Synchronize read and bookmark state with the sync server."""
    feed_list = _get_list()

    if _settings is None or not _settings.sync_url:
        return _error("Sync is not configured. Set RSSR_SYNC_URL.")

    try:
        updated = sync_list(feed_list, _settings.sync_url, api_key=_settings.api_key)
    except RssrError as e:
        return _error(str(e))

    return json.dumps({"status": "success", "items_updated": updated})
