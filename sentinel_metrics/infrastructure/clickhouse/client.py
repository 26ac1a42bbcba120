"""ClickHouse client wrapper for the metric table.

Every store failure stops here: it is logged, counted and handed to the
optional ``error_hook``, and the caller sees a dropped write or an empty
result instead of an exception.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Iterable, Iterator, Optional, Sequence

from clickhouse_driver import Client
from sentinel_metrics.core.config import Settings, settings
from sentinel_metrics.core.logger import get_logger
from sentinel_metrics.core.metrics import (
    QUERY_LATENCY,
    SAMPLES_WRITTEN,
    STORE_QUERY_ERRORS,
    STORE_WRITE_ERRORS,
)
from sentinel_metrics.domain.operations import MetricRecord
from sentinel_metrics.infrastructure.clickhouse.codec import (
    METRIC_COLUMNS,
    record_values,
)
from sentinel_metrics.infrastructure.clickhouse.ddl import metric_table_ddls
from sentinel_metrics.infrastructure.clickhouse.queries import (
    MetricQuery,
    validate_table_name,
)

from shared.utils.retry import retry

logger = get_logger("sentinel_metrics.clickhouse")

ErrorHook = Callable[[str, BaseException], None]


class ClickHouseMetricStore:
    def __init__(
        self,
        client: Optional[Client] = None,
        table: Optional[str] = None,
        error_hook: Optional[ErrorHook] = None,
        config: Optional[Settings] = None,
    ):
        cfg = config or settings
        if client is None:
            client = Client(
                host=cfg.clickhouse_host,
                port=cfg.clickhouse_port,
                user=cfg.clickhouse_user,
                password=cfg.clickhouse_password,
                database=cfg.clickhouse_db,
                connect_timeout=cfg.clickhouse_connect_timeout,
                send_receive_timeout=cfg.clickhouse_send_receive_timeout,
            )
        self.client = client
        self.table = validate_table_name(table or cfg.clickhouse_metric_table)
        self.error_hook = error_hook
        # clickhouse-driver raises PartiallyConsumedQueryError when queries
        # overlap on one connection, so every call (including a streaming
        # read until it is drained or closed) holds this lock.
        self._lock = threading.RLock()
        self._closed = False

    def ensure_schema(self, retries: int = 5) -> bool:
        def _apply() -> None:
            with self._lock:
                for ddl in metric_table_ddls(self.table):
                    self.client.execute(ddl)

        def _on_retry(attempt: int, exc: BaseException, sleep_for: float) -> None:
            logger.warning(
                "schema_bootstrap_retry",
                extra={
                    "attempt": attempt,
                    "error": str(exc),
                    "sleep_for": round(sleep_for, 2),
                },
            )

        try:
            retry(
                _apply,
                retries=retries,
                base_delay=0.5,
                max_delay=8.0,
                jitter=0.2,
                on_retry=_on_retry,
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception("schema_bootstrap_failed", extra={"table": self.table})
            self._report("ensure_schema", exc)
            return False
        logger.info("schema_ready", extra={"table": self.table})
        return True

    def write_one(self, record: MetricRecord) -> None:
        self.write_many([record])

    def write_many(self, records: Iterable[MetricRecord]) -> None:
        rows = [record_values(r) for r in records]
        if not rows:
            return
        query = f"INSERT INTO {self.table} ({', '.join(METRIC_COLUMNS)}) VALUES"
        try:
            with self._lock:
                self.client.execute(query, rows)
        except Exception as exc:  # noqa: BLE001
            STORE_WRITE_ERRORS.inc(len(rows))
            logger.exception(
                "store_write_failed", extra={"table": self.table, "rows": len(rows)}
            )
            self._report("write", exc)
            return
        SAMPLES_WRITTEN.inc(len(rows))

    def query(
        self,
        query: MetricQuery,
        on_columns: Optional[Callable[[Sequence[Any]], None]] = None,
    ) -> Iterator[tuple]:
        """Stream result rows lazily.

        The column header is passed to ``on_columns`` before the first row.
        Closing the generator before it is drained drops the connection so
        the unread remainder of the result cannot leak into the next query.
        """
        started = time.perf_counter()
        drained = False
        with self._lock:
            try:
                stream = self.client.execute_iter(
                    query.text, query.params, with_column_types=True
                )
                header_seen = False
                for item in stream:
                    if not header_seen:
                        header_seen = True
                        if on_columns is not None:
                            on_columns(item)
                        continue
                    yield item
                drained = True
            except Exception as exc:  # noqa: BLE001
                STORE_QUERY_ERRORS.inc()
                logger.exception(
                    "store_query_failed",
                    extra={"kind": query.kind, "query": query.text.strip()},
                )
                self._report("query", exc)
            finally:
                if not drained:
                    self._disconnect()
                QUERY_LATENCY.labels(kind=query.kind).observe(
                    time.perf_counter() - started
                )

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._disconnect()
        logger.info("store_client_closed")

    def __enter__(self) -> "ClickHouseMetricStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _disconnect(self) -> None:
        try:
            self.client.disconnect()
        except Exception as e:  # noqa: BLE001
            logger.warning("Error closing ClickHouse client", extra={"error": str(e)})

    def _report(self, operation: str, exc: BaseException) -> None:
        if self.error_hook is None:
            return
        try:
            self.error_hook(operation, exc)
        except Exception:  # noqa: BLE001
            logger.exception("error_hook_failed", extra={"operation": operation})
