"""Pytest configuration and shared fixtures."""

import os
import time
from unittest.mock import Mock

import pytest
from testcontainers.nats import NatsContainer

from dxl_epo_client.infrastructure.in_memory_fabric import InMemoryFabric
from dxl_epo_client.infrastructure.in_memory_metrics import InMemoryMetrics
from tests.builders import RegistryBuilder


@pytest.fixture
def fabric():
    """Connected in-memory fabric with no responders."""
    return InMemoryFabric()


@pytest.fixture
def registry():
    """Empty registry builder."""
    return RegistryBuilder()


@pytest.fixture
def metrics():
    return InMemoryMetrics()


@pytest.fixture
def mock_logger():
    """Create a mock logger."""
    logger = Mock()
    logger.debug = Mock()
    logger.info = Mock()
    logger.warning = Mock()
    logger.error = Mock()
    return logger


@pytest.fixture(scope="session")
def nats_url():
    """NATS server for integration tests."""
    if os.getenv("SKIP_INTEGRATION_TESTS", "").lower() == "true":
        pytest.skip("Integration tests disabled")

    # Use existing NATS if available
    if os.getenv("NATS_URL"):
        yield os.getenv("NATS_URL")
        return

    container = NatsContainer("nats:2.10-alpine")
    try:
        container.start()
    except Exception as e:
        pytest.skip(f"Cannot start NATS container: {e}")

    # Wait for NATS to be ready
    time.sleep(2)

    yield f"nats://{container.get_container_host_ip()}:{container.get_exposed_port(4222)}"

    container.stop()
