"""Metrics repository backed by the ClickHouse metric store.

Notes:
    - Blank identifiers are answered with an empty result or a no-op.
    - Store failures never reach the caller (see ClickHouseMetricStore).
    - ``rank_hot_resources`` keeps its per-resource aggregates local to the
      call, so concurrent invocations share nothing but the store client.
"""

from __future__ import annotations

import time
from contextlib import closing
from typing import Callable, Dict, Iterable, List, Optional

from sentinel_metrics.core.config import settings
from sentinel_metrics.core.logger import get_logger
from sentinel_metrics.domain.models import MetricSample, is_blank
from sentinel_metrics.domain.operations import MetricRecord
from sentinel_metrics.infrastructure.clickhouse.client import ClickHouseMetricStore
from sentinel_metrics.infrastructure.clickhouse.codec import decode_rows, encode
from sentinel_metrics.infrastructure.clickhouse.queries import (
    MetricQuery,
    range_query,
    window_query,
)
from sentinel_metrics.utils.concurrency import run_blocking

logger = get_logger("sentinel_metrics.repository")


def merge_by_resource(samples: Iterable[MetricSample]) -> Dict[str, MetricSample]:
    """Fold raw samples into one aggregate per resource.

    The first sample of a resource is copied; later ones are accumulated into
    the copy, so the input samples are never modified.
    """
    aggregates: Dict[str, MetricSample] = {}
    for sample in samples:
        current = aggregates.get(sample.resource)
        if current is None:
            aggregates[sample.resource] = sample.copy_for_aggregation()
            continue
        current.add_pass(sample.pass_count)
        current.add_rt_and_success(sample.avg_rt, sample.success_count)
        current.add_block(sample.block_count)
        current.add_exception(sample.exception_count)
        current.add_interval(1)
    return aggregates


def rank_resources(aggregates: Dict[str, MetricSample]) -> List[str]:
    """Resource names by block count, then pass count, both descending.

    ``sorted`` is stable, so full ties keep first-seen order.
    """
    ranked = sorted(
        aggregates.items(),
        key=lambda item: (-item[1].block_count, -item[1].pass_count),
    )
    return [resource for resource, _ in ranked]


class MetricsRepository:
    def __init__(
        self,
        store: ClickHouseMetricStore,
        clock: Callable[[], float] = time.time,
        hot_window_ms: Optional[int] = None,
    ):
        self.store = store
        self.clock = clock
        self.hot_window_ms = (
            settings.metrics_hot_window_ms if hot_window_ms is None else hot_window_ms
        )

    # Writes
    def save(self, sample: Optional[MetricSample]) -> None:
        record = self._encode(sample)
        if record is not None:
            self.store.write_one(record)

    def save_all(self, samples: Optional[Iterable[Optional[MetricSample]]]) -> None:
        if samples is None:
            return
        records: List[MetricRecord] = []
        for sample in samples:
            record = self._encode(sample)
            if record is not None:
                records.append(record)
        if records:
            self.store.write_many(records)

    # Reads
    def query_range(
        self, app: str, resource: str, start_ms: int, end_ms: int
    ) -> List[MetricSample]:
        query = range_query(self.store.table, app, resource, start_ms, end_ms)
        if query is None:
            return []
        return self._fetch(query)

    def rank_hot_resources(self, app: str) -> List[str]:
        if is_blank(app):
            return []
        end_ms = int(self.clock() * 1000)
        query = window_query(
            self.store.table, app, end_ms - self.hot_window_ms, end_ms
        )
        if query is None:
            return []
        samples = self._fetch(query)
        if not samples:
            return []
        return rank_resources(merge_by_resource(samples))

    list_hot_resources = rank_hot_resources

    # Internals
    def _encode(self, sample: Optional[MetricSample]) -> Optional[MetricRecord]:
        if sample is None or is_blank(sample.app):
            return None
        if is_blank(sample.resource):
            logger.warning("sample_without_resource", extra={"app": sample.app})
            return None
        return encode(sample)

    def _fetch(self, query: MetricQuery) -> List[MetricSample]:
        header: list = []
        with closing(self.store.query(query, on_columns=header.extend)) as rows:
            return decode_rows(rows, columns=header)


class AsyncMetricsRepository:
    """asyncio facade; each call runs the blocking repository in a thread."""

    def __init__(self, repository: MetricsRepository):
        self.repository = repository

    async def save(self, sample: Optional[MetricSample]) -> None:
        await run_blocking(self.repository.save, sample)

    async def save_all(self, samples: Optional[Iterable[Optional[MetricSample]]]) -> None:
        if samples is not None:
            samples = list(samples)
        await run_blocking(self.repository.save_all, samples)

    async def query_range(
        self, app: str, resource: str, start_ms: int, end_ms: int
    ) -> List[MetricSample]:
        return await run_blocking(
            self.repository.query_range, app, resource, start_ms, end_ms
        )

    async def rank_hot_resources(self, app: str) -> List[str]:
        return await run_blocking(self.repository.rank_hot_resources, app)

    list_hot_resources = rank_hot_resources
