"""Shared test fixtures and collection-time service gating for sqsstream."""

from __future__ import annotations

import os
import socket
from urllib.parse import urlparse

import pytest

from sqsstream.integrations import MockSQSClient

DEFAULT_SQS_ENDPOINT = "http://localhost:4566"


def _is_port_open(host: str, port: int, timeout: float = 0.5) -> bool:
    """Return True when host:port accepts TCP connections."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.settimeout(timeout)
        return sock.connect_ex((host, port)) == 0


def _host_port_from_url(url: str, default_port: int) -> tuple[str, int]:
    parsed = urlparse(url)
    host = parsed.hostname or "localhost"
    port = parsed.port or default_port
    return host, port


def _sqs_endpoint() -> str:
    return os.getenv("SQSSTREAM_TEST_ENDPOINT", DEFAULT_SQS_ENDPOINT)


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip tests that need a real SQS endpoint when none is reachable."""
    host, port = _host_port_from_url(_sqs_endpoint(), default_port=4566)
    available = None
    for item in items:
        if item.get_closest_marker("requires_sqs") is None:
            continue
        if available is None:
            available = _is_port_open(host, port)
        if not available:
            item.add_marker(pytest.mark.skip(reason=f"SQS endpoint is not available on {host}:{port}"))


@pytest.fixture(autouse=True)
def _isolate_stream_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer SQSSTREAM_* variables out of config resolution."""
    for name in list(os.environ):
        if name.startswith("SQSSTREAM_") and name != "SQSSTREAM_TEST_ENDPOINT":
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mock_sqs() -> MockSQSClient:
    """In-memory SQS client with a fast long-poll interval."""
    return MockSQSClient(poll_interval=0.001)


@pytest.fixture
def queue_url(mock_sqs: MockSQSClient) -> str:
    return mock_sqs.create_queue("orders")
