"""Utilities shared across neo_pubsub layers."""
