"""Protocol layer: pure types, interfaces and errors.

Nothing in this package performs I/O. Everything else in neo_pubsub
depends on it; it depends on nothing else in neo_pubsub.
"""

from neo_pubsub.protocols.errors import (
    NeoPubSubError,
    EncodingError,
    BusUnavailableError,
    MalformedPayloadError,
    ConnectionSendError,
)
from neo_pubsub.protocols.interfaces import (
    LoggerProtocol,
    BlockLike,
    CommitHookProtocol,
    BusPublisherProtocol,
    BusSubscriberProtocol,
    ConnectionProtocol,
)
from neo_pubsub.protocols.types import (
    BLOCK_CONFIRMATIONS,
    ALL_CHANNELS,
    Channel,
    VMState,
    ParameterType,
    ContractParameter,
    Notification,
    ExecutionRecord,
    Block,
    BlockMessage,
    NotificationMessage,
    Envelope,
)

__all__ = [
    # Errors
    "NeoPubSubError",
    "EncodingError",
    "BusUnavailableError",
    "MalformedPayloadError",
    "ConnectionSendError",
    # Interfaces
    "LoggerProtocol",
    "BlockLike",
    "CommitHookProtocol",
    "BusPublisherProtocol",
    "BusSubscriberProtocol",
    "ConnectionProtocol",
    # Types
    "BLOCK_CONFIRMATIONS",
    "ALL_CHANNELS",
    "Channel",
    "VMState",
    "ParameterType",
    "ContractParameter",
    "Notification",
    "ExecutionRecord",
    "Block",
    "BlockMessage",
    "NotificationMessage",
    "Envelope",
]
