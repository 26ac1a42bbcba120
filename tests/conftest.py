from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from sentinel_metrics.domain.models import MetricSample
from sentinel_metrics.infrastructure.clickhouse.codec import METRIC_COLUMNS

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0, 250000, tzinfo=timezone.utc)

COLUMN_HEADER = [(name, "String") for name in METRIC_COLUMNS]


@pytest.fixture
def mock_click_house_client():
    """Mock clickhouse_driver.Client for unit tests"""
    client = MagicMock()
    client.execute = MagicMock(return_value=[])
    client.execute_iter = MagicMock(return_value=iter([COLUMN_HEADER]))
    return client


@pytest.fixture
def make_sample():
    """Factory for MetricSample with sensible defaults."""

    def _make(**overrides) -> MetricSample:
        values = {
            "app": "order-service",
            "resource": "GET:/orders",
            "timestamp": BASE_TIME,
            "created_at": BASE_TIME,
            "modified_at": BASE_TIME,
            "pass_count": 10,
            "success_count": 9,
            "block_count": 1,
            "exception_count": 0,
            "avg_rt": 12.5,
        }
        values.update(overrides)
        return MetricSample(**values)

    return _make


@pytest.fixture
def make_row():
    """Factory for positional result rows in METRIC_COLUMNS order."""

    def _make(**overrides) -> tuple:
        values = {
            "time": BASE_TIME,
            "app": "order-service",
            "resource": "GET:/orders",
            "id": 1714564800250,
            "created_at": 1714564800250,
            "modified_at": 1714564800250,
            "pass_count": 10,
            "success_count": 9,
            "block_count": 1,
            "exception_count": 0,
            "rt": 12.5,
            "count": 1,
            "resource_code": None,
        }
        values.update(overrides)
        return tuple(values[column] for column in METRIC_COLUMNS)

    return _make
