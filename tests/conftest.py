"""Pytest configuration for the neo-pubsub test suite.

Key Principles:
- No Redis server: Redis clients are mocked, end-to-end runs use InMemoryBus
- Ledger inputs are plain dataclasses built by fixtures
- Client connections are FakeConnection stubs
"""

import sys
from pathlib import Path

import pytest

# tests directory (for fixtures.*)
tests_root = Path(__file__).parent
if str(tests_root) not in sys.path:
    sys.path.insert(0, str(tests_root))

from neo_pubsub.protocols import (  # noqa: E402
    Block,
    ContractParameter,
    ExecutionRecord,
    Notification,
)


# =============================================================================
# PYTEST MARKERS
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (may use mocks)"
    )
    config.addinivalue_line(
        "markers", "integration: End-to-end tests over the in-memory bus"
    )


# =============================================================================
# LEDGER FIXTURES
# =============================================================================

@pytest.fixture
def sample_block():
    """A persisted block with hash 0xAA."""
    return Block(
        hash="0xAA",
        index=100,
        size=686,
        version=0,
        previousblockhash="0x99",
        merkleroot="0xbb",
        time=1_530_000_000,
        nonce="e3f4b0c1d2a39e1f",
        nextconsensus="AZ81H31DMWzbSnFDLFkzh9vHwaDLayV7fU",
        script={"invocation": "40aa", "verification": "5521"},
        tx=[{"txid": "0xT1", "type": "InvocationTransaction"}],
    )


@pytest.fixture
def hello_notification():
    """Notification from contract 0xCC carrying one String parameter."""
    return Notification(contract="0xCC", state=[ContractParameter.string("hello")])


@pytest.fixture
def halted_record(hello_notification):
    """Successful execution record with one notification."""
    return ExecutionRecord.create("0xT1", [hello_notification])


@pytest.fixture
def faulted_record():
    """Faulted execution record with one notification."""
    return ExecutionRecord.create(
        "0xT2",
        [Notification(contract="0xDD", state=[ContractParameter.string("ignored")])],
        faulted=True,
    )
