"""In-process pub/sub bus for single-node deployments and tests.

Implements both BusPublisherProtocol and BusSubscriberProtocol. Publishing is
thread-safe: the ledger may publish from its own thread while subscribers
consume on an asyncio event loop. Each payload is handed to the subscriber's
loop with ``call_soon_threadsafe``, which keeps per-channel FIFO order.
"""

import asyncio
import threading
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator, FrozenSet, Iterable, List, Optional, Tuple

from neo_pubsub.protocols import BusUnavailableError, LoggerProtocol
from neo_pubsub.utils.logging import get_component_logger

_CLOSED = object()


@dataclass(eq=False)
class _Subscription:
    loop: asyncio.AbstractEventLoop
    channels: FrozenSet[str]
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)


class InMemoryBus:
    """Process-local bus with at-most-once, best-effort delivery.

    Usage:
        bus = InMemoryBus()
        publisher = CommitPublisher(bus)
        relay = RelaySubscriber(bus, broadcaster)
    """

    def __init__(self, logger: Optional[LoggerProtocol] = None) -> None:
        self._subscriptions: List[_Subscription] = []
        self._lock = threading.Lock()
        self._closed = False
        self._logger = get_component_logger("memory_bus", logger)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, channel: str, payload: str) -> int:
        """Deliver a payload to every current subscriber of ``channel``.

        Returns:
            Number of subscribers the payload was handed to

        Raises:
            BusUnavailableError: If the bus has been closed
        """
        with self._lock:
            if self._closed:
                raise BusUnavailableError("In-memory bus is closed", channel=channel)
            targets = [s for s in self._subscriptions if channel in s.channels]

        delivered = 0
        for subscription in targets:
            try:
                subscription.loop.call_soon_threadsafe(
                    subscription.queue.put_nowait, (channel, payload)
                )
                delivered += 1
            except RuntimeError:
                # Subscriber's loop is closed
                self._discard(subscription)
        return delivered

    async def listen(self, channels: Iterable[str]) -> AsyncGenerator[Tuple[str, Any], None]:
        """Yield ``(channel, payload)`` pairs until the bus is closed.

        Raises:
            BusUnavailableError: If the bus is already closed
        """
        subscription = _Subscription(
            loop=asyncio.get_running_loop(),
            channels=frozenset(channels),
        )
        with self._lock:
            if self._closed:
                raise BusUnavailableError("In-memory bus is closed")
            self._subscriptions.append(subscription)
        self._logger.debug("memory_bus_subscribed", channels=sorted(subscription.channels))

        try:
            while True:
                item = await subscription.queue.get()
                if item is _CLOSED:
                    return
                yield item
        finally:
            self._discard(subscription)

    def _discard(self, subscription: _Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def close(self) -> None:
        """Close the bus and end every active subscription."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            targets = list(self._subscriptions)

        for subscription in targets:
            try:
                subscription.loop.call_soon_threadsafe(subscription.queue.put_nowait, _CLOSED)
            except RuntimeError:
                # Subscriber's loop is gone; nothing left to wake
                continue
        self._logger.info("memory_bus_closed", subscribers=len(targets))

    async def aclose(self) -> None:
        self.close()


__all__ = ["InMemoryBus"]
