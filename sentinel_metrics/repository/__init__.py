from .metrics_repository import (
    AsyncMetricsRepository,
    MetricsRepository,
    merge_by_resource,
    rank_resources,
)

__all__ = [
    "AsyncMetricsRepository",
    "MetricsRepository",
    "merge_by_resource",
    "rank_resources",
]
