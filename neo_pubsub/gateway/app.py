"""
neo-pubsub Relay Gateway - FastAPI application.

Pushes every message published on the bus to connected WebSocket clients.

Endpoints:
- WebSocket: /ws            (optional ?type=blocks|events|blocks,events)
- Health:    /health, /ready
- Metrics:   /stats

Each frame sent to a client is one JSON envelope:
    {"type": "blocks" | "events", "data": <bus payload>}
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Query, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from neo_pubsub import __version__
from neo_pubsub.bus import create_subscriber
from neo_pubsub.events.relay import RelaySubscriber
from neo_pubsub.gateway.websocket_manager import (
    StarletteConnection,
    WebSocketBroadcaster,
    parse_channel_filter,
)
from neo_pubsub.protocols import BusSubscriberProtocol
from neo_pubsub.settings import Settings, get_settings
from neo_pubsub.utils.logging import configure_logging, get_component_logger

SERVICE_NAME = "neo-pubsub-relay"

# RFC 6455 policy violation
_CLOSE_POLICY_VIOLATION = 1008


def create_app(
    settings: Optional[Settings] = None,
    *,
    subscriber: Optional[BusSubscriberProtocol] = None,
    broadcaster: Optional[WebSocketBroadcaster] = None,
) -> FastAPI:
    """Build the relay gateway.

    Args:
        settings: Settings instance (uses global settings if not provided)
        subscriber: Bus subscriber to relay from (built from settings if not
            provided; an injected subscriber is not closed on shutdown)
        broadcaster: Broadcaster to fan out with (created if not provided)

    Returns:
        FastAPI application whose lifespan owns the relay task
    """
    settings = settings or get_settings()
    broadcaster = broadcaster or WebSocketBroadcaster(send_timeout=settings.websocket_send_timeout)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """
        Application lifecycle manager.

        Handles:
        - Bus subscription and relay task
        - Closing every client connection on shutdown
        """
        configure_logging(settings.log_level, json_output=settings.log_json)
        _logger = get_component_logger("gateway")
        settings.log_bus_config(_logger)

        owns_subscriber = subscriber is None
        bus = subscriber if subscriber is not None else create_subscriber(settings)
        relay = RelaySubscriber(
            bus,
            broadcaster,
            reconnect_delay=settings.relay_reconnect_delay,
            max_reconnect_delay=settings.relay_max_reconnect_delay,
        )
        app.state.relay = relay

        await relay.start()
        _logger.info("gateway_startup_complete", status="READY")

        try:
            yield
        finally:
            _logger.info("gateway_shutdown_initiated")
            await relay.stop()
            await broadcaster.close_all()
            if owns_subscriber:
                await bus.aclose()
            _logger.info("gateway_shutdown_complete")

    app = FastAPI(
        title="neo-pubsub Relay Gateway",
        description="Pushes ledger block and contract events to WebSocket clients",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.broadcaster = broadcaster
    app.state.relay = None

    # =========================================================================
    # Health Endpoints
    # =========================================================================

    @app.get("/health")
    async def health() -> JSONResponse:
        """Liveness probe - always 200 while the process is alive."""
        return JSONResponse({"status": "healthy", "service": SERVICE_NAME})

    @app.get("/ready")
    async def ready() -> JSONResponse:
        """Readiness probe - 200 once the relay task is running."""
        relay = app.state.relay
        running = relay is not None and relay.running
        checks = {
            "relay": "running" if running else "stopped",
            "connections": broadcaster.connection_count,
        }
        if running:
            return JSONResponse({"status": "ready", **checks})
        return JSONResponse(status_code=503, content={"status": "not_ready", **checks})

    @app.get("/stats")
    async def stats() -> JSONResponse:
        """Relay and broadcaster counters."""
        relay = app.state.relay
        return JSONResponse({
            "relay": relay.stats() if relay is not None else None,
            "broadcaster": broadcaster.stats(),
        })

    # =========================================================================
    # WebSocket Support
    # =========================================================================

    @app.websocket("/ws")
    async def websocket_endpoint(
        websocket: WebSocket,
        channel_filter: Optional[str] = Query(default=None, alias="type"),
    ) -> None:
        """
        Push endpoint. Client-sent frames are read and ignored; reading is
        only how a disconnect is noticed.
        """
        _logger = get_component_logger("gateway")
        try:
            channels = parse_channel_filter(channel_filter)
        except ValueError as e:
            _logger.info("websocket_rejected", reason=str(e))
            await websocket.close(code=_CLOSE_POLICY_VIOLATION)
            return

        await websocket.accept()
        connection = StarletteConnection(websocket)
        client_count = await broadcaster.register(connection, channels)
        _logger.info("websocket_connected", client_count=client_count)

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        except WebSocketDisconnect:
            _logger.debug("websocket_client_disconnected")
        except RuntimeError as e:
            # Broadcaster already closed this socket after a failed send
            _logger.debug("websocket_receive_after_close", error=str(e))
        finally:
            await broadcaster.unregister(connection)
            _logger.info("websocket_disconnected", client_count=broadcaster.connection_count)

    return app


def run() -> None:
    """Console entry point: serve the gateway with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.websocket_host,
        port=settings.websocket_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
