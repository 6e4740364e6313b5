"""Pytest configuration and shared fixtures."""

import os

import pytest
from loguru import logger

# Load env vars
from dotenv import load_dotenv
load_dotenv()


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "online: mark test as online test (hits the live Wayback Machine)")


def pytest_collection_modifyitems(config, items):
    """Skip online tests unless ARCHIVE_CHECK_ONLINE_TESTS is set."""
    if os.getenv("ARCHIVE_CHECK_ONLINE_TESTS"):
        return
    skip_online = pytest.mark.skip(reason="set ARCHIVE_CHECK_ONLINE_TESTS=1 to run online tests")
    for item in items:
        if "online" in item.keywords:
            item.add_marker(skip_online)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(lambda msg: messages.append(msg.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
