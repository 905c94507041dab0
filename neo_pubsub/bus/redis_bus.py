"""Redis pub/sub bus.

Two halves with different execution models:

- RedisPublisher: synchronous ``redis.Redis`` client used on the ledger's
  commit path. Socket timeouts bound how long a publish can block.
- RedisSubscriber: ``redis.asyncio`` pub/sub used by the relay's event loop.

Both translate ``redis.exceptions.RedisError`` into BusUnavailableError so
callers never depend on the client library's exception types.
"""

from typing import Any, AsyncGenerator, Iterable, Optional, Tuple

import redis
import redis.asyncio as aioredis
from redis.exceptions import RedisError

from neo_pubsub.protocols import BusUnavailableError, LoggerProtocol
from neo_pubsub.utils.logging import get_component_logger


class RedisPublisher:
    """Synchronous publisher implementing BusPublisherProtocol.

    Usage:
        publisher = RedisPublisher.from_settings(settings)
        publisher.publish("blocks", '{"hash": "0x..."}')
    """

    def __init__(
        self,
        client: Any,
        logger: Optional[LoggerProtocol] = None,
    ) -> None:
        """Initialize publisher.

        Args:
            client: ``redis.Redis`` instance
            logger: Logger for DI (uses a default structlog logger if not provided)
        """
        self._client = client
        self._logger = get_component_logger("redis_publisher", logger)

    @classmethod
    def from_settings(cls, settings: Any, logger: Optional[LoggerProtocol] = None) -> "RedisPublisher":
        """Create a publisher for the configured Redis endpoint."""
        timeout = settings.publish_timeout_seconds
        client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
            retry_on_timeout=False,
        )
        publisher = cls(client, logger=logger)
        publisher._logger.info(
            "redis_publisher_created",
            host=settings.redis_host,
            port=settings.redis_port,
        )
        return publisher

    def publish(self, channel: str, payload: str) -> int:
        """Publish one payload.

        Returns:
            Number of subscribers that received the payload

        Raises:
            BusUnavailableError: If Redis cannot be reached in time
        """
        try:
            receivers = self._client.publish(channel, payload)
        except RedisError as e:
            raise BusUnavailableError(
                f"Publish to {channel!r} failed: {e}",
                channel=channel,
            ) from e
        return int(receivers or 0)

    def ping(self) -> bool:
        """Check the Redis connection."""
        try:
            return bool(self._client.ping())
        except RedisError:
            return False

    def close(self) -> None:
        """Close the underlying connection pool."""
        self._client.close()
        self._logger.info("redis_publisher_closed")


class RedisSubscriber:
    """Asynchronous subscriber implementing BusSubscriberProtocol.

    Usage:
        subscriber = RedisSubscriber.from_settings(settings)
        async for channel, payload in subscriber.listen(["blocks", "events"]):
            ...
    """

    def __init__(
        self,
        client: Any,
        logger: Optional[LoggerProtocol] = None,
    ) -> None:
        """Initialize subscriber.

        Args:
            client: ``redis.asyncio.Redis`` instance
            logger: Logger for DI (uses a default structlog logger if not provided)
        """
        self._client = client
        self._logger = get_component_logger("redis_subscriber", logger)

    @classmethod
    def from_settings(cls, settings: Any, logger: Optional[LoggerProtocol] = None) -> "RedisSubscriber":
        """Create a subscriber for the configured Redis endpoint."""
        client = aioredis.from_url(
            settings.get_redis_url(),
            socket_connect_timeout=settings.publish_timeout_seconds,
            health_check_interval=30,
        )
        return cls(client, logger=logger)

    async def listen(self, channels: Iterable[str]) -> AsyncGenerator[Tuple[str, Any], None]:
        """Subscribe to ``channels`` and yield ``(channel, payload)`` pairs.

        Payloads are yielded as received (bytes); decoding is the caller's
        concern so a bad payload cannot break the subscription.

        Raises:
            BusUnavailableError: If the subscription cannot be established
                or the connection drops
        """
        channels = list(channels)
        pubsub = self._client.pubsub(ignore_subscribe_messages=True)
        try:
            await pubsub.subscribe(*channels)
            self._logger.info("redis_subscribed", channels=channels)

            async for message in pubsub.listen():
                if message is None or message.get("type") != "message":
                    continue
                channel = message.get("channel")
                if isinstance(channel, bytes):
                    channel = channel.decode("utf-8", errors="replace")
                yield channel, message.get("data")

        except RedisError as e:
            raise BusUnavailableError(f"Subscription to {channels} failed: {e}") from e
        finally:
            try:
                await pubsub.aclose()
            except RedisError as e:
                self._logger.debug("redis_pubsub_close_failed", error=str(e))

    async def ping(self) -> bool:
        """Check the Redis connection."""
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()
        self._logger.info("redis_subscriber_closed")


__all__ = ["RedisPublisher", "RedisSubscriber"]
