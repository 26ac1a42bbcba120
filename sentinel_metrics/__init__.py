"""Metric sample persistence and hot-resource ranking over ClickHouse."""

from sentinel_metrics.domain.models import MetricSample, resource_hash
from sentinel_metrics.infrastructure.clickhouse.client import ClickHouseMetricStore
from sentinel_metrics.lifecycle import metrics_repository
from sentinel_metrics.repository import AsyncMetricsRepository, MetricsRepository

__all__ = [
    "AsyncMetricsRepository",
    "ClickHouseMetricStore",
    "MetricSample",
    "MetricsRepository",
    "metrics_repository",
    "resource_hash",
]
