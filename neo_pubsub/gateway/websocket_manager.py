"""
WebSocket broadcaster for relaying bus messages to live clients.

This module provides:
- Connection registration with an optional per-connection channel filter
- Fan-out of one envelope to every open connection, in parallel
- Removal of closed or failing connections during fan-out
- Connection and delivery counters

Delivery is at-most-once and best-effort: nothing is queued per
connection, and a connection that cannot take a frame right now is dropped.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, FrozenSet, Iterable, Optional, Union

from fastapi.websockets import WebSocket, WebSocketState

from neo_pubsub.protocols import (
    ALL_CHANNELS,
    Channel,
    ConnectionProtocol,
    ConnectionSendError,
    Envelope,
    LoggerProtocol,
)
from neo_pubsub.utils.logging import get_component_logger


class StarletteConnection:
    """Adapts a FastAPI/Starlette WebSocket to ConnectionProtocol."""

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    async def send(self, data: str) -> None:
        await self._websocket.send_text(data)

    async def close(self, code: int = 1000) -> None:
        if self._websocket.application_state != WebSocketState.DISCONNECTED:
            await self._websocket.close(code=code)


def parse_channel_filter(value: Optional[Union[str, Iterable[Union[Channel, str]]]]) -> FrozenSet[Channel]:
    """Resolve a channel filter such as ``"blocks,events"``.

    An empty or missing filter selects every channel.

    Raises:
        ValueError: If any name is not a known channel
    """
    if value is None:
        return frozenset(ALL_CHANNELS)
    if isinstance(value, str):
        value = [part for part in value.split(",") if part.strip()]
    channels = frozenset(Channel.parse(c) if isinstance(c, str) else Channel(c) for c in value)
    return channels or frozenset(ALL_CHANNELS)


class WebSocketBroadcaster:
    """Fans relayed bus messages out to connected clients.

    The connection set is guarded by a single asyncio lock. Broadcasts take a
    snapshot under the lock and send outside it, so a slow client never
    blocks registration of new ones.

    Usage:
        broadcaster = WebSocketBroadcaster()
        await broadcaster.register(StarletteConnection(websocket))
        await broadcaster.broadcast("blocks", {"hash": "0x..."})
    """

    def __init__(
        self,
        *,
        send_timeout: Optional[float] = None,
        logger: Optional[LoggerProtocol] = None,
    ) -> None:
        """Initialize the broadcaster.

        Args:
            send_timeout: Write deadline per send (uses settings default)
            logger: Logger for DI (uses a default structlog logger if not provided)
        """
        if send_timeout is None:
            from neo_pubsub.settings import get_settings
            send_timeout = get_settings().websocket_send_timeout

        self._connections: Dict[ConnectionProtocol, FrozenSet[Channel]] = {}
        self._lock = asyncio.Lock()
        self._send_timeout = send_timeout
        self._logger = get_component_logger("websocket_broadcaster", logger)

        self._connected_total = 0
        self._failed_total = 0
        self._messages_sent = 0
        self._broadcasts = 0

    async def register(
        self,
        connection: ConnectionProtocol,
        channels: Optional[Iterable[Union[Channel, str]]] = None,
    ) -> int:
        """Register an open connection.

        Args:
            connection: Connection to add
            channels: Channels this connection receives (default: all)

        Returns:
            Current number of connections
        """
        subscribed = parse_channel_filter(channels)
        async with self._lock:
            self._connections[connection] = subscribed
            self._connected_total += 1
            count = len(self._connections)

        self._logger.debug(
            "connection_registered",
            channels=sorted(c.value for c in subscribed),
            connections=count,
        )
        return count

    async def unregister(self, connection: ConnectionProtocol) -> bool:
        """Remove a connection.

        Returns:
            True if the connection was registered; False if it was already gone
        """
        async with self._lock:
            return self._connections.pop(connection, None) is not None

    async def broadcast(self, channel: Union[Channel, str], data: Any) -> int:
        """Send ``{"type": channel, "data": data}`` to every open connection.

        Never raises for a connection-level failure; failing and closed
        connections are removed instead.

        Returns:
            Number of connections the envelope was delivered to
        """
        channel = Channel.parse(channel) if isinstance(channel, str) else Channel(channel)
        serialized = Envelope(type=channel, data=data).to_json()

        async with self._lock:
            targets = [c for c, subscribed in self._connections.items() if channel in subscribed]
            self._broadcasts += 1

        if not targets:
            return 0

        results = await asyncio.gather(*(self._deliver(c, serialized) for c in targets))
        return sum(1 for delivered in results if delivered)

    async def _deliver(self, connection: ConnectionProtocol, data: str) -> bool:
        if not connection.is_open:
            await self._drop(connection, reason="closed")
            return False

        try:
            await self._send(connection, data)
        except ConnectionSendError as e:
            self._logger.debug("websocket_send_failed", error=str(e))
            await self._drop(connection, reason="send_failed", close=True)
            return False

        self._messages_sent += 1
        return True

    async def _send(self, connection: ConnectionProtocol, data: str) -> None:
        try:
            await asyncio.wait_for(connection.send(data), timeout=self._send_timeout)
        except asyncio.TimeoutError as e:
            raise ConnectionSendError(
                f"Send timed out after {self._send_timeout}s",
                connection=connection,
            ) from e
        except Exception as e:
            raise ConnectionSendError(
                f"{type(e).__name__}: {e}",
                connection=connection,
            ) from e

    async def _drop(self, connection: ConnectionProtocol, *, reason: str, close: bool = False) -> None:
        # Only the caller that actually removed the connection may close it
        if not await self.unregister(connection):
            return

        self._failed_total += 1
        self._logger.info("connection_dropped", reason=reason, connections=self.connection_count)

        if close:
            try:
                await connection.close()
            except Exception as e:
                self._logger.debug("connection_close_failed", error=str(e))

    async def close_all(self) -> int:
        """Close and forget every connection.

        Returns:
            Number of connections closed
        """
        async with self._lock:
            connections = list(self._connections)
            self._connections.clear()

        for connection in connections:
            try:
                await connection.close()
            except Exception as e:
                self._logger.debug("connection_close_failed", error=str(e))

        if connections:
            self._logger.info("connections_closed", count=len(connections))
        return len(connections)

    @property
    def connection_count(self) -> int:
        """Get the number of registered connections."""
        return len(self._connections)

    def stats(self) -> Dict[str, int]:
        """Counters for monitoring."""
        return {
            "connected": self.connection_count,
            "connected_total": self._connected_total,
            "failed": self._failed_total,
            "broadcasts": self._broadcasts,
            "messages_sent": self._messages_sent,
        }


__all__ = ["WebSocketBroadcaster", "StarletteConnection", "parse_channel_filter"]
