"""Mapping between MetricSample and the store's records and result rows.

Result rows are positional. ``METRIC_COLUMNS`` is the contract every query
projects and every row is decoded against; changing its order requires a
``SCHEMA_VERSION`` bump.
"""

from __future__ import annotations

import math
import numbers
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable, List, Optional, Sequence

from sentinel_metrics.core.logger import get_logger
from sentinel_metrics.core.metrics import ROW_DECODE_ERRORS
from sentinel_metrics.domain.models import (
    MetricSample,
    from_epoch_millis,
    is_blank,
    now_millis,
    to_epoch_millis,
    utcnow,
)
from sentinel_metrics.domain.operations import MetricRecord, MetricTags

logger = get_logger("sentinel_metrics.codec")

SCHEMA_VERSION = 1

METRIC_COLUMNS = (
    "time",
    "app",
    "resource",
    "id",
    "created_at",
    "modified_at",
    "pass_count",
    "success_count",
    "block_count",
    "exception_count",
    "rt",
    "count",
    "resource_code",
)

RowErrorSink = Callable[[Exception, Any], None]


def encode(sample: MetricSample) -> MetricRecord:
    """Build the write record for ``sample``, assigning ``sample.id`` if unset."""
    if is_blank(sample.app):
        raise ValueError("app must not be blank")
    if is_blank(sample.resource):
        raise ValueError("resource must not be blank")
    if sample.id is None:
        sample.id = now_millis()
    return MetricRecord(
        time=sample.timestamp,
        tags=MetricTags(app=sample.app, resource=sample.resource),
        fields={
            "id": sample.id,
            "created_at": to_epoch_millis(sample.created_at),
            "modified_at": to_epoch_millis(sample.modified_at),
            "pass_count": sample.pass_count,
            "success_count": sample.success_count,
            "block_count": sample.block_count,
            "exception_count": sample.exception_count,
            "rt": sample.avg_rt,
            "count": sample.interval_count,
            "resource_code": sample.resource_code,
        },
    )


def record_values(record: MetricRecord) -> tuple:
    """Flatten a record into a tuple ordered like ``METRIC_COLUMNS``."""
    flat = {"time": record["time"], **record["tags"], **record["fields"]}
    return tuple(flat[column] for column in METRIC_COLUMNS)


def column_names(columns: Iterable[Any]) -> tuple:
    # Headers come back as (name, type) pairs from the driver.
    return tuple(c[0] if isinstance(c, (tuple, list)) else c for c in columns)


def check_schema(row: Sequence[Any], columns: Optional[Sequence[Any]] = None) -> None:
    if len(row) != len(METRIC_COLUMNS):
        raise ValueError(
            f"expected {len(METRIC_COLUMNS)} columns (schema v{SCHEMA_VERSION}), "
            f"got {len(row)}"
        )
    if columns:
        names = column_names(columns)
        if names != METRIC_COLUMNS:
            raise ValueError(
                f"column order {names} does not match schema v{SCHEMA_VERSION}"
            )


def _to_int(value: Any) -> int:
    if isinstance(value, str):
        try:
            return int(Decimal(value.strip()))
        except (InvalidOperation, ValueError, OverflowError):
            return 0
    if isinstance(value, bool) or not isinstance(value, numbers.Number):
        return 0
    try:
        return int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError, OverflowError):
        return 0


def _to_float(value: Any) -> float:
    if isinstance(value, str):
        try:
            result = float(value)
        except ValueError:
            return 0.0
        return result if math.isfinite(result) else 0.0
    if isinstance(value, bool) or not isinstance(value, numbers.Number):
        return 0.0
    try:
        result = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return result if math.isfinite(result) else 0.0


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        try:
            return from_epoch_millis(int(value))
        except (ValueError, OverflowError, OSError):
            return utcnow()
    return utcnow()


def _to_text(value: Any, name: str) -> str:
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    if not isinstance(value, str):
        raise ValueError(f"{name} column is not text: {value!r}")
    return value


def decode(row: Sequence[Any], columns: Optional[Sequence[Any]] = None) -> MetricSample:
    """Build a MetricSample from one positional result row.

    Null or non-numeric counters read as zero and an unreadable time reads as
    now. Non-text ``app``/``resource`` values fail the row.
    """
    check_schema(row, columns)
    resource = _to_text(row[2], "resource")
    sample = MetricSample(
        timestamp=_to_datetime(row[0]),
        app=_to_text(row[1], "app"),
        resource=resource,
        id=_to_int(row[3]),
        created_at=_to_datetime(row[4]),
        modified_at=_to_datetime(row[5]),
        pass_count=_to_int(row[6]),
        success_count=_to_int(row[7]),
        block_count=_to_int(row[8]),
        exception_count=_to_int(row[9]),
        avg_rt=_to_float(row[10]),
        interval_count=max(_to_int(row[11]), 1),
    )
    stored_code = row[12]
    if stored_code is not None and _to_int(stored_code) != sample.resource_code:
        logger.debug(
            "resource_code_mismatch",
            extra={"resource": resource, "stored_code": stored_code},
        )
    return sample


def decode_rows(
    rows: Iterable[Sequence[Any]],
    columns: Optional[Sequence[Any]] = None,
    on_error: Optional[RowErrorSink] = None,
) -> List[MetricSample]:
    """Decode every row, skipping (and reporting) the ones that fail.

    ``columns`` may be filled lazily by the row source; it is consulted once
    the first row has been pulled. A header that disagrees with
    ``METRIC_COLUMNS`` discards the whole result.
    """
    samples: List[MetricSample] = []
    for index, row in enumerate(rows):
        if index == 0 and columns and column_names(columns) != METRIC_COLUMNS:
            ROW_DECODE_ERRORS.inc()
            logger.error(
                "result_schema_mismatch",
                extra={
                    "columns": list(column_names(columns)),
                    "schema_version": SCHEMA_VERSION,
                },
            )
            return []
        try:
            samples.append(decode(row))
        except Exception as exc:  # noqa: BLE001
            ROW_DECODE_ERRORS.inc()
            logger.warning(
                "row_decode_failed", extra={"row_index": index, "error": str(exc)}
            )
            if on_error is not None:
                try:
                    on_error(exc, row)
                except Exception:  # noqa: BLE001
                    logger.exception(
                        "row_error_sink_failed", extra={"row_index": index}
                    )
    return samples
