"""Pytest configuration for the tokenprism test suite."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from prometheus_client import CollectorRegistry

from tokenprism.core.monitoring import MetricsCollector, configure_metrics_collector


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line options for controlling integration tests."""

    parser.addoption(
        "--tokenprism-run-integration",
        action="store_true",
        default=False,
        help="Run tokenprism integration tests that require a Redis server.",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register the integration marker for tokenprism tests."""

    config.addinivalue_line(
        "markers",
        "integration: marks tokenprism tests requiring external services",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly requested."""

    if config.getoption("--tokenprism-run-integration"):
        return

    skip_integration = pytest.mark.skip(
        reason="integration tests require --tokenprism-run-integration",
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture(autouse=True)
def metrics() -> Iterator[MetricsCollector]:
    """A fresh global collector per test so counters start at zero."""

    collector = MetricsCollector(registry=CollectorRegistry())
    configure_metrics_collector(collector)
    yield collector
    configure_metrics_collector(None)
