"""Root conftest.py for neo-pubsub tests.

This file MUST be at the repository root for fixtures to be discovered
when running tests from any subdirectory.

Provides shared fixtures used across all test modules:
- mock_logger: MagicMock implementing LoggerProtocol
- fresh settings / memory bus singletons per test
"""

import pytest
from unittest.mock import MagicMock


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing.

    ``bind`` returns the same mock so component loggers record into it.
    """
    logger = MagicMock()
    logger.info = MagicMock()
    logger.debug = MagicMock()
    logger.warning = MagicMock()
    logger.error = MagicMock()
    logger.exception = MagicMock()
    logger.bind = MagicMock(return_value=logger)
    return logger


@pytest.fixture(autouse=True)
def _isolate_singletons():
    """Reset module-level settings and the in-memory bus around each test."""
    from neo_pubsub.bus import reset_memory_bus
    from neo_pubsub.settings import reset_settings

    reset_settings()
    reset_memory_bus()
    yield
    reset_settings()
    reset_memory_bus()
