"""
Per-principal live channels for real-time notification delivery.

``publish`` is fire-and-forget: it never blocks the caller and never raises.
Each subscription owns a bounded queue drained by its WebSocket sender; a full
queue drops the message (the notification is still stored and can be pulled).
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 100


@dataclass(eq=False)
class Subscription:
    """One live connection of a principal."""

    principal_id: str
    queue: asyncio.Queue
    loop: asyncio.AbstractEventLoop
    id: str = field(default_factory=lambda: uuid4().hex)
    connected_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    dropped: int = 0


class ChannelRegistry:
    """Maps principal id to its live subscriptions."""

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self._queue_size = queue_size
        self._subscriptions: dict[str, set[Subscription]] = {}

    def subscribe(self, principal_id: Any) -> Subscription:
        """Open a subscription; must be called from the event loop that will drain it."""
        key = str(principal_id)
        subscription = Subscription(
            principal_id=key,
            queue=asyncio.Queue(maxsize=self._queue_size),
            loop=asyncio.get_running_loop(),
        )
        self._subscriptions.setdefault(key, set()).add(subscription)
        logger.info(
            "Channel subscribed",
            extra={"principal_id": key, "subscription_id": subscription.id},
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subs = self._subscriptions.get(subscription.principal_id)
        if not subs:
            return
        subs.discard(subscription)
        if not subs:
            del self._subscriptions[subscription.principal_id]
        logger.info(
            "Channel unsubscribed",
            extra={"principal_id": subscription.principal_id, "subscription_id": subscription.id},
        )

    def is_connected(self, principal_id: Any) -> bool:
        return bool(self._subscriptions.get(str(principal_id)))

    def connection_count(self) -> int:
        return sum(len(subs) for subs in self._subscriptions.values())

    def publish(self, principal_id: Any, event: str, payload: dict[str, Any]) -> bool:
        """
        Hand a message to every live subscription of a principal.

        Returns True if at least one subscription accepted the hand-off, False
        when the principal is not connected or every hand-off failed.
        """
        key = str(principal_id)
        subs = list(self._subscriptions.get(key, ()))
        if not subs:
            logger.debug("No live channel for principal", extra={"principal_id": key})
            return False
        message = {"event": event, "data": payload}
        delivered = False
        for subscription in subs:
            try:
                subscription.loop.call_soon_threadsafe(_offer, subscription, message)
                delivered = True
            except RuntimeError as e:
                # Loop already closed: the connection is gone.
                logger.warning(
                    "Channel push failed",
                    extra={"principal_id": key, "subscription_id": subscription.id, "reason": str(e)},
                )
                self.unsubscribe(subscription)
        return delivered


def _offer(subscription: Subscription, message: dict[str, Any]) -> None:
    try:
        subscription.queue.put_nowait(message)
    except asyncio.QueueFull:
        subscription.dropped += 1
        logger.warning(
            "Channel queue full; message dropped",
            extra={
                "principal_id": subscription.principal_id,
                "subscription_id": subscription.id,
                "dropped": subscription.dropped,
            },
        )
