"""Background polling loop for rssr."""

import asyncio
import logging

from rssr.config import DEFAULT_POLL_INTERVAL
from rssr.database import Database
from rssr.errors import NoFeedsInListError
from rssr.feed_list import FeedList

logger = logging.getLogger(__name__)


def refresh_and_count(feed_list: FeedList) -> int:
    """Refresh every feed, draining all results. Returns count of new items."""
    try:
        results = feed_list.refresh_all()
    except NoFeedsInListError:
        return 0
    return sum(result.new_items for result in results)


async def poll_feeds_once(feed_list: FeedList) -> int:
    """Poll all feeds once. Returns count of new items found."""
    return await asyncio.to_thread(refresh_and_count, feed_list)


def save_snapshot(feed_list: FeedList, db: Database) -> None:
    data = feed_list.serialize()
    db.save_snapshot(data, feed_list.ts)
    db.prune_snapshots()


async def start_polling(
    feed_list: FeedList, db: Database, interval: int = DEFAULT_POLL_INTERVAL
) -> None:
    """Run the polling loop indefinitely."""
    logger.info("Poller started (interval: %ds)", interval)

    while True:
        try:
            new_count = await poll_feeds_once(feed_list)
            if new_count > 0:
                logger.info("Poll cycle complete: %d new items", new_count)
            save_snapshot(feed_list, db)
        except Exception as e:
            logger.error("Poll cycle failed: %s", e)

        await asyncio.sleep(interval)
