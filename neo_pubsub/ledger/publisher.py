"""CommitPublisher - turns one ledger commit into bus messages.

Invoked synchronously by the ledger once per committed block:

    blocks  <- encode_block(block)                      (exactly one, first)
    events  <- encode_notification(...) for every notification of every
               non-faulted execution record, in record and emission order

The publisher is an observer, not a transactional participant. Nothing it
does can fail the commit. Every message is encoded and published on its
own: an encoding or bus failure skips that one message and the rest of the
commit is still published.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from neo_pubsub.ledger.codec import encode_block, encode_notification
from neo_pubsub.protocols import (
    BusPublisherProtocol,
    BusUnavailableError,
    Channel,
    EncodingError,
    ExecutionRecord,
    LoggerProtocol,
    Notification,
)
from neo_pubsub.utils.logging import get_component_logger


@dataclass
class CommitStats:
    """Running totals across all commits seen by a publisher."""
    commits: int = 0
    published: int = 0
    publish_failures: int = 0
    encoding_failures: int = 0
    faulted_records: int = 0


class CommitPublisher:
    """Commit hook that publishes blocks and contract notifications.

    Usage:
        publisher = CommitPublisher(RedisPublisher.from_settings(settings))
        host.install(publisher)
        ...
        host.notify_commit(block, execution_records)
    """

    def __init__(
        self,
        bus: BusPublisherProtocol,
        logger: Optional[LoggerProtocol] = None,
    ) -> None:
        """Initialize publisher.

        Args:
            bus: Synchronous bus publisher
            logger: Logger for DI (uses a default structlog logger if not provided)
        """
        self._bus = bus
        self._logger = get_component_logger("commit_publisher", logger)
        self.stats = CommitStats()

    def on_commit(self, block: Any, execution_records: Sequence[ExecutionRecord]) -> None:
        """Publish one commit. Never raises."""
        self.stats.commits += 1
        try:
            self._publish_commit(block, execution_records)
        except Exception as e:
            self._logger.error(
                "commit_publish_failed",
                error=str(e),
                error_type=type(e).__name__,
            )

    def _publish_commit(self, block: Any, execution_records: Sequence[ExecutionRecord]) -> None:
        block_hash = self._publish_block(block)

        events = 0
        for record in execution_records:
            if record.faulted:
                self.stats.faulted_records += 1
                self._logger.debug(
                    "faulted_record_skipped",
                    txid=record.txid,
                    notifications=len(record.notifications),
                )
                continue

            for notification in record.notifications:
                payload = self._encode_event(record.txid, notification)
                if payload is not None and self._publish(Channel.EVENTS, payload):
                    events += 1

        self._logger.debug(
            "commit_published",
            block_hash=block_hash,
            records=len(execution_records),
            events=events,
        )

    def _publish_block(self, block: Any) -> Optional[str]:
        try:
            message = encode_block(block)
        except Exception as e:
            # Includes failures raised by the ledger's own to_dict()
            self.stats.encoding_failures += 1
            self._logger.warning(
                "block_encoding_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return None
        self._publish(Channel.BLOCKS, message.to_json())
        return message.fields.get("hash")

    def _encode_event(self, txid: str, notification: Notification) -> Optional[str]:
        try:
            return encode_notification(notification.contract, txid, notification.state).to_json()
        except EncodingError as e:
            self.stats.encoding_failures += 1
            self._logger.warning(
                "notification_encoding_failed",
                txid=txid,
                contract=notification.contract,
                parameter_type=e.parameter_type,
                error=str(e),
            )
            return None

    def _publish(self, channel: Channel, payload: str) -> bool:
        try:
            self._bus.publish(channel.value, payload)
        except Exception as e:
            # One failed publish never stops the rest of the commit
            self.stats.publish_failures += 1
            self._logger.error(
                "bus_publish_failed",
                channel=channel.value,
                error=str(e),
                error_type=type(e).__name__,
                bus_unavailable=isinstance(e, BusUnavailableError),
            )
            return False
        self.stats.published += 1
        return True

    def close(self) -> None:
        """Release the bus connection."""
        self._bus.close()


def create_commit_publisher(
    settings: Optional[Any] = None,
    logger: Optional[LoggerProtocol] = None,
) -> CommitPublisher:
    """Build a CommitPublisher wired to the configured bus.

    Args:
        settings: Settings instance (uses global settings if not provided)
        logger: Logger for DI

    Returns:
        CommitPublisher ready to be installed as a commit hook
    """
    from neo_pubsub.bus import create_publisher
    from neo_pubsub.settings import get_settings

    settings = settings or get_settings()
    settings.log_bus_config(get_component_logger("commit_publisher", logger))
    return CommitPublisher(create_publisher(settings, logger=logger), logger=logger)


__all__ = ["CommitPublisher", "CommitStats", "create_commit_publisher"]
