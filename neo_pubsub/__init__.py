"""neo-pubsub: ledger commit events to pub/sub channels to WebSocket clients.

Sub-packages:
- protocols/  - Types, interfaces and errors (no I/O)
- ledger/     - Message codec, commit publisher, commit hook host
- bus/        - Redis and in-memory pub/sub backends
- events/     - Relay subscriber (bus -> broadcaster)
- gateway/    - WebSocket broadcaster and FastAPI push gateway
- utils/      - Logging

Top-level modules:
- settings    - Configuration (pydantic-settings)

Data flow:
    Ledger commit
           | CommitHookHost.notify_commit
    CommitPublisher (codec)
           | PUBLISH blocks / events
    Bus
           | SUBSCRIBE
    RelaySubscriber
           | broadcast
    WebSocketBroadcaster -> every open client connection

Usage:
    from neo_pubsub.ledger import CommitHookHost, create_commit_publisher

    host = CommitHookHost()
    host.install(create_commit_publisher())
    host.notify_commit(block, execution_records)
"""

__version__ = "1.0.0"
