"""Ledger side of the pipeline: codec, commit publisher and hook host."""

from neo_pubsub.ledger.codec import encode_block, encode_notification, encode_parameter
from neo_pubsub.ledger.hooks import CommitHookHost
from neo_pubsub.ledger.publisher import CommitPublisher, CommitStats, create_commit_publisher

__all__ = [
    "encode_block",
    "encode_notification",
    "encode_parameter",
    "CommitHookHost",
    "CommitPublisher",
    "CommitStats",
    "create_commit_publisher",
]
