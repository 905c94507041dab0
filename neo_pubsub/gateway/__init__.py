"""Gateway - client-facing WebSocket push transport (FastAPI)."""

from neo_pubsub.gateway.websocket_manager import (
    StarletteConnection,
    WebSocketBroadcaster,
    parse_channel_filter,
)

__all__ = ["StarletteConnection", "WebSocketBroadcaster", "parse_channel_filter"]
