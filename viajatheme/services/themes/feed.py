"""
Change-notification channel for the theme collection.

The store publishes a coarse "changed" event (no diff) after every insert,
update or delete; each subscriber owns a queue that is released when its
subscription scope exits.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4

from loguru import logger


@dataclass(frozen=True)
class ThemeStoreEvent:
    """Something in the theme collection changed."""

    reason: str
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class Subscription:
    """One consumer's view of the feed."""

    subscription_id: str
    queue: asyncio.Queue[ThemeStoreEvent]

    async def next_event(self) -> ThemeStoreEvent:
        return await self.queue.get()


class ChangeFeed:
    """Fan-out of store change events to in-process subscribers."""

    def __init__(self, max_pending: int = 100):
        self._max_pending = max_pending
        self._subscriptions: dict[str, Subscription] = {}

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def publish(self, reason: str) -> int:
        """
        Deliver an event to every subscriber.

        A subscriber whose queue is full already has a refresh pending, so the
        event is dropped for it.

        Returns:
            Number of subscribers the event was queued for
        """
        event = ThemeStoreEvent(reason=reason)
        delivered = 0
        for subscription in list(self._subscriptions.values()):
            try:
                subscription.queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                logger.debug(f"Subscriber {subscription.subscription_id} backlog full; dropping {reason}")
        logger.debug(f"Published theme change '{reason}' to {delivered} subscriber(s)")
        return delivered

    def open(self) -> Subscription:
        subscription = Subscription(
            subscription_id=str(uuid4()),
            queue=asyncio.Queue(maxsize=self._max_pending),
        )
        self._subscriptions[subscription.subscription_id] = subscription
        return subscription

    def close(self, subscription: Subscription) -> None:
        self._subscriptions.pop(subscription.subscription_id, None)

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[Subscription]:
        """Scoped subscription; the queue is always released on exit."""
        subscription = self.open()
        try:
            yield subscription
        finally:
            self.close(subscription)
