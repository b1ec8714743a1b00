"""Root test configuration."""

import logging

import pytest
import structlog

from fleetplane.config import Settings


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


@pytest.fixture
def settings():
    """Settings pointing at fake endpoints with tight timings."""
    return Settings(
        manager_url="https://manager.example.com",
        kube_api_url="https://kube.example.com",
        api_token="test-token",
        poll_interval=0.001,
        poll_timeout=1.0,
        client_id="tests",
    )
