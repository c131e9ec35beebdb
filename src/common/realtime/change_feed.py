# src/common/realtime/change_feed.py
"""
In-process change subscriptions.

Services publish the name of a collection after committing a write to it.
Every open subscription on that collection reloads its query and yields a
fresh snapshot. Subscriptions are scoped resources: leave the `async with`
block or call `cancel()` and the listener is gone.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from src.common.realtime.queries import StoreQuery

logger = logging.getLogger(__name__)

SnapshotLoader = Callable[[StoreQuery], Awaitable[List[Any]]]

_CHANGED = object()
_CLOSED = object()


class Subscription:
    """Async iterator of snapshots for one query."""

    def __init__(self, feed: "ChangeFeed", query: StoreQuery, loader: SnapshotLoader):
        self.query = query
        self._feed = feed
        self._loader = loader
        self._signals: asyncio.Queue = asyncio.Queue()
        self._initial_sent = False
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def notify(self) -> None:
        if not self._cancelled:
            self._signals.put_nowait(_CHANGED)

    def cancel(self) -> None:
        """Release the listener. Safe to call any number of times."""
        if self._cancelled:
            return
        self._cancelled = True
        self._feed._discard(self)
        self._signals.put_nowait(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> List[Any]:
        if self._cancelled:
            raise StopAsyncIteration
        if not self._initial_sent:
            self._initial_sent = True
            return await self._loader(self.query)

        signal = await self._signals.get()
        # Collapse a burst of writes into one reload
        while signal is _CHANGED and not self._signals.empty():
            signal = self._signals.get_nowait()
        if signal is _CLOSED or self._cancelled:
            raise StopAsyncIteration
        return await self._loader(self.query)

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.cancel()


class ChangeFeed:
    def __init__(self):
        self._listeners: Dict[str, Set[Subscription]] = {}

    def subscribe(self, query: StoreQuery, loader: SnapshotLoader) -> Subscription:
        subscription = Subscription(self, query, loader)
        self._listeners.setdefault(query.collection, set()).add(subscription)
        logger.debug("Subscription opened on %s", query.collection)
        return subscription

    def publish(self, collection: str) -> None:
        """Signal that `collection` changed. Called after the write commits."""
        for subscription in list(self._listeners.get(collection, ())):
            subscription.notify()

    def listener_count(self, collection: Optional[str] = None) -> int:
        if collection is not None:
            return len(self._listeners.get(collection, ()))
        return sum(len(subscriptions) for subscriptions in self._listeners.values())

    def _discard(self, subscription: Subscription) -> None:
        listeners = self._listeners.get(subscription.query.collection)
        if listeners is None:
            return
        listeners.discard(subscription)
        if not listeners:
            del self._listeners[subscription.query.collection]
        logger.debug("Subscription closed on %s", subscription.query.collection)
