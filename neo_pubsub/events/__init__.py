"""Relay side of the pipeline: bus subscription feeding the broadcaster."""

from neo_pubsub.events.relay import RelaySubscriber, parse_payload

__all__ = ["RelaySubscriber", "parse_payload"]
