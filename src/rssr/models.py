"""Data models for rssr."""

import time
from dataclasses import dataclass, field
from datetime import datetime
from urllib.parse import urlparse


@dataclass
class Entry:
    """A normalized entry as produced by the feed parser."""

    title: str = ""
    link: str = ""
    enclosures: list[str] = field(default_factory=list)
    guid: str = ""
    description: str = ""
    content: str = ""
    published: datetime | None = None
    updated: datetime | None = None


@dataclass
class FeedDocument:
    """A fetched and parsed remote feed."""

    title: str = ""
    description: str = ""
    link: str = ""
    feed_link: str = ""
    entries: list[Entry] = field(default_factory=list)

    def to_dict(self) -> dict:
        # Entries live on the feed's items, not in the snapshot document.
        return {
            "title": self.title,
            "description": self.description,
            "link": self.link,
            "feed_link": self.feed_link,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FeedDocument":
        return cls(
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            link=str(data.get("link") or ""),
            feed_link=str(data.get("feed_link") or ""),
        )


@dataclass(eq=False)
class Item:
    """A merged feed entry and its mutable read/bookmark state.

    Two items are the same logical item when their ``key`` matches; the key
    is assigned once at merge time and never recomputed.
    """

    key: str
    title: str = ""
    link: str = ""
    enclosures: list[str] = field(default_factory=list)
    description: str = ""
    content: str = ""
    published: datetime | None = None
    updated: datetime | None = None
    read: bool = False
    bookmark: bool = False
    last_changed: int = 0

    def timestamp(self) -> datetime | None:
        """Effective timestamp: ``updated`` if strictly later, else ``published``."""
        if self.published is not None and self.updated is not None:
            return self.updated if self.updated > self.published else self.published
        return self.published or self.updated

    def display_title(self) -> str:
        title = self.title
        if self.bookmark:
            title = f"* {title}"
        if not self.read:
            title = f"+ {title}"
        return title

    def url(self) -> str:
        """The item link, falling back to the first enclosure."""
        raw = self.link or (self.enclosures[0] if self.enclosures else "")
        return raw if is_valid_url(raw) else ""

    def summary(self) -> str:
        if self.description:
            return self.description
        if self.content:
            return self.content
        if self.published is not None:
            return self.published.isoformat()
        return ""

    def enclosures_text(self) -> str:
        if not self.enclosures:
            return ""
        lines = ["Enclosed links:"]
        lines.extend(f"- [{i}] {url}" for i, url in enumerate(self.enclosures))
        return "\n".join(lines) + "\n"

    def content_text(self) -> str:
        """Header (timestamp, link), body and enclosure list for reading."""
        ts = self.timestamp()
        return "%s\n%s\n\n%s\n\n%s\n\n" % (
            ts.isoformat() if ts else "",
            self.url(),
            self.content or self.summary(),
            self.enclosures_text(),
        )

    def filter_content(self) -> str:
        return f"{self.display_title()} {self.summary()}"

    def toggle_read(self, ts: int | None = None) -> None:
        self.read = not self.read
        self.last_changed = ts if ts is not None else time.time_ns()

    def mark_read(self, ts: int | None = None) -> None:
        if not self.read:
            self.read = True
            self.last_changed = ts if ts is not None else time.time_ns()

    def toggle_bookmark(self, ts: int | None = None) -> None:
        self.bookmark = not self.bookmark
        self.last_changed = ts if ts is not None else time.time_ns()

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "title": self.title,
            "link": self.link,
            "enclosures": list(self.enclosures),
            "description": self.description,
            "content": self.content,
            "published": _dt_to_str(self.published),
            "updated": _dt_to_str(self.updated),
            "read": self.read,
            "bookmark": self.bookmark,
            "last_changed": self.last_changed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Item":
        """Build an item from its snapshot form.

        Raises:
            KeyError, TypeError, ValueError: If the data is malformed.
        """
        key = data["key"]
        if not isinstance(key, str) or not key:
            raise ValueError("item has no identity key")
        enclosures = data.get("enclosures") or []
        if not isinstance(enclosures, list):
            raise TypeError("item enclosures must be a list")
        read = data.get("read", False)
        bookmark = data.get("bookmark", False)
        if not isinstance(read, bool) or not isinstance(bookmark, bool):
            raise TypeError("item read and bookmark flags must be booleans")
        last_changed = data.get("last_changed") or 0
        if isinstance(last_changed, bool) or not isinstance(last_changed, int):
            raise TypeError("item last_changed must be an integer")
        return cls(
            key=key,
            title=str(data.get("title") or ""),
            link=str(data.get("link") or ""),
            enclosures=[str(url) for url in enclosures],
            description=str(data.get("description") or ""),
            content=str(data.get("content") or ""),
            published=_str_to_dt(data.get("published")),
            updated=_str_to_dt(data.get("updated")),
            read=read,
            bookmark=bookmark,
            last_changed=last_changed,
        )


def is_valid_url(url: str) -> bool:
    """Check that a URL is absolute http(s)."""
    try:
        result = urlparse(url)
    except ValueError:
        return False
    return result.scheme in ("http", "https") and bool(result.netloc)


# --- Helper functions ---


def _dt_to_str(dt: datetime | None) -> str | None:
    """Convert datetime to ISO string for storage."""
    return dt.isoformat() if dt else None


def _str_to_dt(s: str | None) -> datetime | None:
    """Convert stored ISO string back to datetime."""
    if not s:
        return None
    return datetime.fromisoformat(s)
