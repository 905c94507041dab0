"""Error kinds raised by the neo-pubsub pipeline.

None of these errors is fatal to the process. Each one is caught at the
boundary of the unit of work it affects (one notification, one payload, one
connection, one bus round-trip) and logged there:

- EncodingError         -> the single notification is skipped
- BusUnavailableError   -> publisher logs and moves on, subscriber backs off
- MalformedPayloadError -> the bus payload is dropped
- ConnectionSendError   -> the client connection is removed
"""

from typing import Any, Optional


class NeoPubSubError(Exception):
    """Base class for all neo-pubsub errors."""
    pass


class EncodingError(NeoPubSubError):
    """Raised when a contract parameter cannot be rendered to its wire form."""

    def __init__(self, message: str, parameter_type: Optional[str] = None):
        self.parameter_type = parameter_type
        super().__init__(message)


class BusUnavailableError(NeoPubSubError):
    """Raised when a publish or subscribe cannot reach the bus."""

    def __init__(self, message: str, channel: Optional[str] = None):
        self.channel = channel
        super().__init__(message)


class MalformedPayloadError(NeoPubSubError):
    """Raised when a payload received from the bus cannot be parsed."""

    def __init__(self, message: str, channel: str, payload: Any = None):
        self.channel = channel
        self.payload = payload
        super().__init__(message)


class ConnectionSendError(NeoPubSubError):
    """Raised when a frame cannot be written to a client connection."""

    def __init__(self, message: str, connection: Any = None):
        self.connection = connection
        super().__init__(message)


__all__ = [
    "NeoPubSubError",
    "EncodingError",
    "BusUnavailableError",
    "MalformedPayloadError",
    "ConnectionSendError",
]
