"""RelaySubscriber - relays bus channel messages to the broadcaster.

Architecture:
    CommitPublisher
           | PUBLISH blocks / events
    Bus (Redis pub/sub)
           | SUBSCRIBE (streaming)
    RelaySubscriber (this module)
           | broadcast(channel, parsed body)
    WebSocketBroadcaster -> clients

The subscription lives from start() until stop(). Dropped connections are
retried with exponential backoff; malformed payloads are dropped one at a
time without touching the subscription.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, Iterable, Optional

from neo_pubsub.protocols import (
    ALL_CHANNELS,
    BusSubscriberProtocol,
    BusUnavailableError,
    Channel,
    LoggerProtocol,
    MalformedPayloadError,
)
from neo_pubsub.utils.logging import get_component_logger


def parse_payload(channel: str, raw: Any) -> Dict[str, Any]:
    """Decode one bus payload into its JSON object.

    Raises:
        MalformedPayloadError: If the payload is not UTF-8 JSON describing
            an object
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedPayloadError("Payload is not valid UTF-8", channel, raw) from e
    if not isinstance(raw, str):
        raise MalformedPayloadError(f"Unsupported payload type {type(raw).__name__}", channel, raw)

    try:
        body = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedPayloadError(f"Invalid JSON: {e.msg}", channel, raw) from e

    if not isinstance(body, dict):
        raise MalformedPayloadError("Payload is not a JSON object", channel, raw)
    return body


class RelaySubscriber:
    """Long-lived subscription that feeds the broadcaster.

    Usage:
        relay = RelaySubscriber(subscriber, broadcaster)
        await relay.start()
        ...
        await relay.stop()
    """

    def __init__(
        self,
        subscriber: BusSubscriberProtocol,
        broadcaster: Any,  # WebSocketBroadcaster
        *,
        channels: Optional[Iterable[Channel]] = None,
        reconnect_delay: float = 2.0,
        max_reconnect_delay: float = 60.0,
        logger: Optional[LoggerProtocol] = None,
    ) -> None:
        """Initialize relay.

        Args:
            subscriber: Bus subscriber to stream from
            broadcaster: Object with ``async broadcast(channel, data)``
            channels: Channels to relay (default: blocks and events)
            reconnect_delay: First backoff delay after a dropped subscription
            max_reconnect_delay: Backoff ceiling
            logger: Logger for DI (uses a default structlog logger if not provided)
        """
        self._subscriber = subscriber
        self._broadcaster = broadcaster
        self._channels = tuple(Channel(c) for c in (channels or ALL_CHANNELS))
        self._reconnect_delay = reconnect_delay
        self._max_reconnect_delay = max_reconnect_delay
        self._logger = get_component_logger("relay_subscriber", logger)
        self._task: Optional[asyncio.Task] = None
        self._running = False

        self.relayed = 0
        self.dropped = 0
        self.reconnects = 0

    @property
    def running(self) -> bool:
        return self._running and self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background subscription loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        self._logger.info("relay_started", channels=[c.value for c in self._channels])

    async def stop(self) -> None:
        """Stop the background subscription loop."""
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        self._logger.info("relay_stopped")

    async def _run_loop(self) -> None:
        """Main loop: subscribe, relay, reconnect on failure."""
        delay = self._reconnect_delay
        names = [c.value for c in self._channels]

        while self._running:
            try:
                stream = self._subscriber.listen(names)
                try:
                    async for channel, raw in stream:
                        if not self._running:
                            break
                        await self.handle_message(channel, raw)
                finally:
                    await stream.aclose()

                # Stream ended without an error
                if self._running:
                    self._logger.warning("relay_stream_ended")

            except asyncio.CancelledError:
                raise
            except Exception as e:
                if not self._running:
                    break
                self.reconnects += 1
                self._logger.warning(
                    "relay_stream_error",
                    error=str(e),
                    error_type=type(e).__name__,
                    bus_unavailable=isinstance(e, BusUnavailableError),
                    reconnect_delay=delay,
                )
                await asyncio.sleep(delay)
                delay = min(delay * 2, self._max_reconnect_delay)
                continue

            # Reset delay on clean stream end
            delay = self._reconnect_delay
            if self._running:
                await asyncio.sleep(delay)

    async def handle_message(self, channel: str, raw: Any) -> bool:
        """Parse one payload and hand it to the broadcaster.

        Returns:
            True if the payload was broadcast, False if it was dropped
        """
        try:
            resolved = Channel.parse(channel)
        except ValueError:
            resolved = None
        if resolved not in self._channels:
            self.dropped += 1
            self._logger.warning("relay_unknown_channel", channel=channel)
            return False

        try:
            body = parse_payload(resolved.value, raw)
        except MalformedPayloadError as e:
            self.dropped += 1
            self._logger.warning(
                "relay_malformed_payload",
                channel=e.channel,
                error=str(e),
            )
            return False

        try:
            await self._broadcaster.broadcast(resolved, body)
        except Exception as e:
            self.dropped += 1
            self._logger.error(
                "relay_broadcast_failed",
                channel=resolved.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        self.relayed += 1
        return True

    def stats(self) -> Dict[str, Any]:
        """Counters for monitoring."""
        return {
            "running": self.running,
            "channels": [c.value for c in self._channels],
            "relayed": self.relayed,
            "dropped": self.dropped,
            "reconnects": self.reconnects,
        }


__all__ = ["RelaySubscriber", "parse_payload"]
