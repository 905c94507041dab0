"""Test doubles for the external collaborators (bus, client connections)."""

import asyncio
from typing import Any, List, Optional, Tuple

from neo_pubsub.protocols import BusUnavailableError


class FakeConnection:
    """Connection stub that records sent frames."""

    def __init__(self, *, open: bool = True, fail_with: Optional[Exception] = None, delay: float = 0.0) -> None:
        self.sent: List[str] = []
        self.closed_count = 0
        self._open = open
        self._fail_with = fail_with
        self._delay = delay

    @property
    def is_open(self) -> bool:
        return self._open

    async def send(self, data: str) -> None:
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._fail_with is not None:
            raise self._fail_with
        self.sent.append(data)

    async def close(self) -> None:
        self.closed_count += 1
        self._open = False


class RecordingPublisher:
    """Bus publisher that records (channel, payload) in publish order."""

    def __init__(self, *, fail_channels: Tuple[str, ...] = ()) -> None:
        self.published: List[Tuple[str, str]] = []
        self.closed = False
        self._fail_channels = fail_channels

    def publish(self, channel: str, payload: str) -> int:
        if channel in self._fail_channels:
            raise BusUnavailableError("bus unreachable", channel=channel)
        self.published.append((channel, payload))
        return 1

    def on(self, channel: str) -> List[str]:
        return [payload for c, payload in self.published if c == channel]

    def close(self) -> None:
        self.closed = True


class RecordingBroadcaster:
    """Broadcaster stub that records (channel, data) pairs."""

    def __init__(self, fail_with: Optional[Exception] = None) -> None:
        self.calls: List[Tuple[Any, Any]] = []
        self._fail_with = fail_with

    async def broadcast(self, channel: Any, data: Any) -> int:
        if self._fail_with is not None:
            raise self._fail_with
        self.calls.append((channel, data))
        return 1


__all__ = ["FakeConnection", "RecordingPublisher", "RecordingBroadcaster"]
