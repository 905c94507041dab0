"""Protocol definitions - interfaces for dependency injection.

These are typing.Protocol classes for static type checking. The ledger,
the bus and the client transport are external collaborators; the pipeline
only ever talks to them through these interfaces.
"""

from typing import Any, AsyncGenerator, Dict, Iterable, Protocol, Sequence, Tuple, runtime_checkable

from neo_pubsub.protocols.types import ExecutionRecord


# =============================================================================
# LOGGING
# =============================================================================

@runtime_checkable
class LoggerProtocol(Protocol):
    """Structured logging interface."""

    def info(self, message: str, **kwargs: Any) -> None: ...
    def debug(self, message: str, **kwargs: Any) -> None: ...
    def warning(self, message: str, **kwargs: Any) -> None: ...
    def error(self, message: str, **kwargs: Any) -> None: ...
    def bind(self, **kwargs: Any) -> "LoggerProtocol": ...


# =============================================================================
# LEDGER
# =============================================================================

@runtime_checkable
class BlockLike(Protocol):
    """Anything that can render its native block fields."""

    def to_dict(self) -> Dict[str, Any]: ...


@runtime_checkable
class CommitHookProtocol(Protocol):
    """Callback invoked by the ledger once per committed block.

    Implementations must not raise; the ledger never sees their errors.
    """

    def on_commit(self, block: Any, execution_records: Sequence[ExecutionRecord]) -> None: ...


# =============================================================================
# BUS
# =============================================================================

@runtime_checkable
class BusPublisherProtocol(Protocol):
    """Synchronous publishing side of the pub/sub bus.

    Raises BusUnavailableError when the bus cannot be reached.
    """

    def publish(self, channel: str, payload: str) -> int: ...
    def close(self) -> None: ...


@runtime_checkable
class BusSubscriberProtocol(Protocol):
    """Asynchronous subscribing side of the pub/sub bus.

    ``listen`` yields ``(channel, payload)`` pairs in per-channel publish
    order. It raises BusUnavailableError when the connection drops.
    """

    def listen(self, channels: Iterable[str]) -> AsyncGenerator[Tuple[str, Any], None]: ...
    async def aclose(self) -> None: ...


# =============================================================================
# CLIENT TRANSPORT
# =============================================================================

@runtime_checkable
class ConnectionProtocol(Protocol):
    """A live client connection (duck typing).

    Any object with an ``is_open`` flag and async ``send``/``close`` works.
    """

    @property
    def is_open(self) -> bool: ...

    async def send(self, data: str) -> None: ...
    async def close(self) -> None: ...


__all__ = [
    "LoggerProtocol",
    "BlockLike",
    "CommitHookProtocol",
    "BusPublisherProtocol",
    "BusSubscriberProtocol",
    "ConnectionProtocol",
]
