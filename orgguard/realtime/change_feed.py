"""
In-process row change feed.

Subscribers register for one table with an optional ``column=eq.value`` filter and a
set of event types. Events are delivered in publish order per table; nothing orders
events of two different tables relative to each other.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Set, Tuple

from orgguard.schemas.voice_campaign import ChangeEvent

logger = logging.getLogger(__name__)

ALL_EVENTS = "*"
EVENT_TYPES = {"INSERT", "UPDATE", "DELETE"}


def parse_filter(expression: Optional[str]) -> Optional[Tuple[str, str]]:
    """Parse ``column=eq.value`` into ``(column, value)``."""
    if not expression:
        return None
    column, sep, rest = expression.partition("=")
    if not sep or not rest.startswith("eq."):
        raise ValueError(f"Unsupported filter expression: {expression}")
    return column.strip(), rest[3:]


def _current_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class Subscription:
    """One registration on the feed. ``unsubscribe`` may be called any number of times."""

    def __init__(
        self,
        feed: "ChangeFeed",
        table: str,
        row_filter: Optional[Tuple[str, str]],
        event_types: Set[str],
        queue: Optional[asyncio.Queue] = None,
    ):
        self.feed = feed
        self.table = table
        self.row_filter = row_filter
        self.event_types = event_types
        self.queue: asyncio.Queue = queue if queue is not None else asyncio.Queue()
        self.active = True
        self._loop = _current_loop()

    def matches(self, event: ChangeEvent) -> bool:
        if ALL_EVENTS not in self.event_types and event.event_type not in self.event_types:
            return False
        if self.row_filter is None:
            return True
        column, value = self.row_filter
        return str(event.new.get(column)) == value

    def deliver(self, event: ChangeEvent) -> None:
        if self._loop is None or self._loop is _current_loop():
            self.queue.put_nowait(event)
        else:
            self._loop.call_soon_threadsafe(self.queue.put_nowait, event)

    async def get(self) -> ChangeEvent:
        return await self.queue.get()

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self.feed._remove(self)


class ChangeFeed:
    """Fan-out of row change events to table subscribers."""

    def __init__(self):
        self.subscribers: Dict[str, Set[Subscription]] = {}

    def subscribe(
        self,
        table: str,
        row_filter: Optional[str] = None,
        event_types: Iterable[str] = (ALL_EVENTS,),
        queue: Optional[asyncio.Queue] = None,
    ) -> Subscription:
        types = set(event_types)
        unknown = types - EVENT_TYPES - {ALL_EVENTS}
        if unknown:
            raise ValueError(f"Unknown event types: {sorted(unknown)}")
        subscription = Subscription(self, table, parse_filter(row_filter), types, queue)
        self.subscribers.setdefault(table, set()).add(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        table_subscribers = self.subscribers.get(subscription.table)
        if not table_subscribers:
            return
        table_subscribers.discard(subscription)
        if not table_subscribers:
            del self.subscribers[subscription.table]

    def subscriber_count(self, table: Optional[str] = None) -> int:
        if table is not None:
            return len(self.subscribers.get(table, ()))
        return sum(len(subs) for subs in self.subscribers.values())

    def publish(self, table: str, event_type: str, row: Dict[str, Any]) -> int:
        """Deliver an event to every matching subscriber; returns the number of recipients."""
        event = ChangeEvent(
            table=table,
            event_type=event_type,
            new=row,
            commit_timestamp=datetime.now(timezone.utc),
        )
        recipients = [s for s in list(self.subscribers.get(table, ())) if s.matches(event)]
        for subscription in recipients:
            subscription.deliver(event)
        logger.debug("Published %s on %s to %s subscriber(s)", event_type, table, len(recipients))
        return len(recipients)
