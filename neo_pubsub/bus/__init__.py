"""Bus module - pub/sub transport between the publisher and the relay.

Provides:
- RedisPublisher / RedisSubscriber (bus_backend="redis", default)
- InMemoryBus (bus_backend="memory", single process only)

Use the factories so the backend is chosen by configuration.
"""

from typing import Any, Optional

from neo_pubsub.bus.memory import InMemoryBus
from neo_pubsub.bus.redis_bus import RedisPublisher, RedisSubscriber
from neo_pubsub.protocols import BusPublisherProtocol, BusSubscriberProtocol, LoggerProtocol

_memory_bus: Optional[InMemoryBus] = None


def get_memory_bus() -> InMemoryBus:
    """Get the process-wide in-memory bus, creating it lazily."""
    global _memory_bus
    if _memory_bus is None or _memory_bus.closed:
        _memory_bus = InMemoryBus()
    return _memory_bus


def reset_memory_bus() -> None:
    """Close and forget the process-wide in-memory bus."""
    global _memory_bus
    if _memory_bus is not None:
        _memory_bus.close()
    _memory_bus = None


def create_publisher(
    settings: Any,
    logger: Optional[LoggerProtocol] = None,
) -> BusPublisherProtocol:
    """Create the publishing side of the configured bus."""
    if settings.bus_backend == "memory":
        return get_memory_bus()
    return RedisPublisher.from_settings(settings, logger=logger)


def create_subscriber(
    settings: Any,
    logger: Optional[LoggerProtocol] = None,
) -> BusSubscriberProtocol:
    """Create the subscribing side of the configured bus."""
    if settings.bus_backend == "memory":
        return get_memory_bus()
    return RedisSubscriber.from_settings(settings, logger=logger)


__all__ = [
    "InMemoryBus",
    "RedisPublisher",
    "RedisSubscriber",
    "create_publisher",
    "create_subscriber",
    "get_memory_bus",
    "reset_memory_bus",
]
