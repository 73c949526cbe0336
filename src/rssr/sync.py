"""Read/bookmark state synchronization with a remote relay.

The relay receives every locally known item's state, merges it with what
other instances reported (highest logical timestamp wins per identity key)
and answers with the merged document, which is then applied locally.
"""

import logging
from dataclasses import dataclass, field

import httpx

from rssr.errors import (
    NoFeedsInListError,
    SyncProtocolError,
    SyncStatusError,
    SyncTransportError,
)
from rssr.feed_list import FeedList

logger = logging.getLogger(__name__)

SYNC_PATH = "/sync"
DEFAULT_API_KEY = "localhost"
DEFAULT_TIMEOUT = 30.0


@dataclass
class ItemState:
    """Mutable state of one item as exchanged with the relay."""

    ts: int
    key: str
    read: bool = False
    bookmark: bool = False

    def to_wire(self) -> dict:
        return {"Ts": self.ts, "GUID": self.key, "Read": self.read, "Bookmark": self.bookmark}

    @classmethod
    def from_wire(cls, data) -> "ItemState":
        if not isinstance(data, dict):
            raise SyncProtocolError(f"decode error: item state must be an object, got {data!r}")
        ts, key = data.get("Ts", 0), data.get("GUID", "")
        read, bookmark = data.get("Read", False), data.get("Bookmark", False)
        if isinstance(ts, bool) or not isinstance(ts, int):
            raise SyncProtocolError(f"decode error: invalid Ts {ts!r}")
        if not isinstance(key, str):
            raise SyncProtocolError(f"decode error: invalid GUID {key!r}")
        if not isinstance(read, bool) or not isinstance(bookmark, bool):
            raise SyncProtocolError("decode error: Read and Bookmark must be booleans")
        return cls(ts=ts, key=key, read=read, bookmark=bookmark)


@dataclass
class StateDocument:
    """All item states of one instance, keyed by identity key."""

    api_key: str = DEFAULT_API_KEY
    items: dict[str, ItemState] = field(default_factory=dict)

    def to_wire(self) -> dict:
        return {
            "ApiKey": self.api_key,
            "ItemIndex": {key: state.to_wire() for key, state in self.items.items()},
        }

    @classmethod
    def from_wire(cls, data) -> "StateDocument":
        if not isinstance(data, dict):
            raise SyncProtocolError("decode error: state document must be an object")
        api_key = data.get("ApiKey", "")
        index = data.get("ItemIndex") or {}
        if not isinstance(api_key, str):
            raise SyncProtocolError("decode error: ApiKey must be a string")
        if not isinstance(index, dict):
            raise SyncProtocolError("decode error: ItemIndex must be an object")
        return cls(
            api_key=api_key,
            items={key: ItemState.from_wire(state) for key, state in index.items()},
        )


def serialize_state(feed_list: FeedList, api_key: str = DEFAULT_API_KEY) -> StateDocument:
    """Collect the state of every indexed item.

    Raises:
        NoFeedsInListError: If the list has no subscribed feeds.
    """
    if not feed_list.subscriptions:
        raise NoFeedsInListError("No feeds in list")

    with feed_list.lock:
        return StateDocument(
            api_key=api_key,
            items={
                key: ItemState(ts=item.last_changed, key=key, read=item.read, bookmark=item.bookmark)
                for key, item in feed_list.item_index.items()
            },
        )


def exchange(
    endpoint: str,
    document: StateDocument,
    client: httpx.Client | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> StateDocument:
    """Send a state document to the relay and return its merged answer.

    Args:
        endpoint: Base URL of the relay; the document is posted to ``/sync``.
        document: Local state.
        client: Optional HTTP client, closed by the caller.
        timeout: Request timeout when no client is given.

    Raises:
        SyncTransportError: If the relay cannot be reached.
        SyncStatusError: If the relay does not answer 200.
        SyncProtocolError: If the answer is not a state document.
    """
    url = endpoint.rstrip("/") + SYNC_PATH
    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=timeout)

    try:
        response = client.post(url, json=document.to_wire())
    except httpx.HTTPError as e:
        raise SyncTransportError(f"post error: {e}") from e
    finally:
        if owns_client:
            client.close()

    if response.status_code != httpx.codes.OK:
        raise SyncStatusError(
            f"unexpected status: {response.status_code} {response.reason_phrase}"
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise SyncProtocolError(f"decode error: {e}") from e

    return StateDocument.from_wire(payload)


def apply_state(feed_list: FeedList, document: StateDocument) -> int:
    """Overwrite local item state with the relay's merged state.

    Only items already known locally are touched. The relay's answer is
    authoritative; no local timestamp comparison is made.

    Returns:
        Number of local items updated.
    """
    applied = 0
    with feed_list.lock:
        for key, state in document.items.items():
            item = feed_list.find_item(key)
            if item is None:
                continue
            item.last_changed = state.ts
            item.read = state.read
            feed_list.set_bookmark(item, state.bookmark)
            applied += 1
    return applied


def sync_list(
    feed_list: FeedList,
    endpoint: str,
    api_key: str = DEFAULT_API_KEY,
    client: httpx.Client | None = None,
) -> int:
    """Serialize, exchange and apply in one round trip.

    Local state is left as it was if any step before applying fails.
    """
    document = serialize_state(feed_list, api_key=api_key)
    merged = exchange(endpoint, document, client=client)
    applied = apply_state(feed_list, merged)
    logger.info("Synced %d items with %s (%d updated)", len(document.items), endpoint, applied)
    return applied
