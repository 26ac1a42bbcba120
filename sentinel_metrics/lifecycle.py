"""Process-scoped ownership of the store client.

One client is opened when the owning process starts and closed exactly once
when the scope exits, however the exit happens.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from sentinel_metrics.core.config import Settings, settings
from sentinel_metrics.core.logger import configure_logging, get_logger
from sentinel_metrics.infrastructure.clickhouse.client import (
    ClickHouseMetricStore,
    ErrorHook,
)
from sentinel_metrics.repository.metrics_repository import MetricsRepository

logger = get_logger("sentinel_metrics.lifecycle")


@contextmanager
def metrics_repository(
    config: Optional[Settings] = None,
    error_hook: Optional[ErrorHook] = None,
) -> Iterator[MetricsRepository]:
    cfg = config or settings
    configure_logging()
    logger.info(
        "metrics_repository_starting",
        extra={
            "clickhouse_host": cfg.clickhouse_host,
            "clickhouse_db": cfg.clickhouse_db,
            "table": cfg.clickhouse_metric_table,
        },
    )
    store = ClickHouseMetricStore(error_hook=error_hook, config=cfg)
    try:
        if cfg.clickhouse_ensure_schema:
            store.ensure_schema(retries=cfg.clickhouse_schema_retries)
        yield MetricsRepository(store, hot_window_ms=cfg.metrics_hot_window_ms)
    finally:
        logger.info("metrics_repository_stopping")
        store.close()
