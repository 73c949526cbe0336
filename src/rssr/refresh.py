"""Concurrent refresh of many feeds, one worker thread per feed."""

import logging
import threading
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from queue import Queue

from rssr.errors import CooldownError, NoFeedsInListError
from rssr.feed import COOLDOWN_SECONDS, Feed

logger = logging.getLogger(__name__)


@dataclass
class FeedResult:
    """Outcome of refreshing a single feed."""

    feed: Feed
    error: Exception | None = None
    new_items: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def update_feeds(
    feeds: Iterable[Feed], cooldown: float = COOLDOWN_SECONDS
) -> Iterator[FeedResult]:
    """Refresh every feed concurrently.

    Args:
        feeds: Feeds to refresh.
        cooldown: Minimum seconds between two refresh attempts of a feed.

    Returns:
        Iterator yielding exactly one FeedResult per feed, in completion
        order. Abandoning it early never blocks the workers.

    Raises:
        NoFeedsInListError: If ``feeds`` is empty. Nothing is started.
    """
    feeds = list(feeds)
    if not feeds:
        raise NoFeedsInListError("No feeds in list")

    results: Queue[FeedResult] = Queue(maxsize=len(feeds))
    for feed in feeds:
        threading.Thread(
            target=_refresh_worker,
            args=(feed, cooldown, results),
            name=f"refresh:{feed.url}",
            daemon=True,
        ).start()

    return _drain(results, len(feeds))


def _refresh_worker(feed: Feed, cooldown: float, results: Queue) -> None:
    try:
        new_items = feed.refresh_if_due(cooldown)
    except CooldownError as e:
        logger.debug("Feed '%s' skipped: %s", feed.url, e)
        results.put(FeedResult(feed=feed, error=e))
    except Exception as e:
        logger.warning("Feed '%s' error: %s", feed.url, e)
        results.put(FeedResult(feed=feed, error=e))
    else:
        if new_items:
            logger.info("Feed '%s': %d new items", feed.url, new_items)
        results.put(FeedResult(feed=feed, new_items=new_items))


def _drain(results: Queue, expected: int) -> Iterator[FeedResult]:
    for _ in range(expected):
        yield results.get()
