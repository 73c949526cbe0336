"""Exceptions raised by the rssr engine."""


class RssrError(Exception):
    """Base class for all rssr errors."""


class NoURLError(RssrError):
    """Raised when refreshing a feed that has no source URL."""


class NoFeedsInListError(RssrError):
    """Raised when an operation needs at least one subscribed feed."""


class NoCategoryGivenError(RssrError):
    """Raised when a category lookup is made with an empty label."""


class NoBookmarkFeedError(RssrError):
    """Raised when the Bookmarks pseudo-feed is missing from a list."""


class CooldownError(RssrError):
    """Raised when a feed is refreshed again before its cooldown elapsed."""


class ConfigError(RssrError):
    """Raised when the feed configuration cannot be parsed."""


class SnapshotError(RssrError):
    """Raised when a persisted snapshot cannot be parsed."""


class SyncError(RssrError):
    """Base class for state synchronization failures."""


class SyncTransportError(SyncError):
    """Raised when the sync peer cannot be reached."""


class SyncProtocolError(SyncError):
    """Raised when the sync peer answers with a malformed state document."""


class SyncStatusError(SyncError):
    """Raised when the sync peer answers with a non-success status."""
