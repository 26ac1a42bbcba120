"""Read queries over the metric table.

Filter values never enter the query text. They are passed as ``%(name)s``
parameters and escaped by clickhouse-driver when the query is sent, so a
quote inside an app or resource name stays part of the compared literal.
"""

from __future__ import annotations

import re
from typing import Any, Dict, NamedTuple, Optional

from sentinel_metrics.domain.models import is_blank
from sentinel_metrics.infrastructure.clickhouse.codec import METRIC_COLUMNS

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

SELECT_COLUMNS = ", ".join(METRIC_COLUMNS)

_TIME_BOUNDS = (
    "time >= fromUnixTimestamp64Milli(toInt64(%(start_ms)s))\n"
    "  AND time <= fromUnixTimestamp64Milli(toInt64(%(end_ms)s))"
)


class MetricQuery(NamedTuple):
    kind: str
    text: str
    params: Dict[str, Any]


def validate_table_name(table: str) -> str:
    if not isinstance(table, str) or not _IDENTIFIER_RE.match(table):
        raise ValueError(f"Invalid table name {table!r}")
    return table


def range_query(
    table: str, app: str, resource: str, start_ms: int, end_ms: int
) -> Optional[MetricQuery]:
    """Samples of one resource within ``[start_ms, end_ms]``, newest first.

    Returns None (nothing to run) when ``app`` or ``resource`` is blank.
    """
    if is_blank(app) or is_blank(resource):
        return None
    text = f"""
SELECT {SELECT_COLUMNS}
FROM {validate_table_name(table)}
WHERE app = %(app)s
  AND resource = %(resource)s
  AND {_TIME_BOUNDS}
ORDER BY time DESC
"""
    return MetricQuery(
        kind="range",
        text=text,
        params={
            "app": app,
            "resource": resource,
            "start_ms": int(start_ms),
            "end_ms": int(end_ms),
        },
    )


def window_query(
    table: str, app: str, start_ms: int, end_ms: int
) -> Optional[MetricQuery]:
    """Every sample of ``app`` within ``[start_ms, end_ms]``, in store order."""
    if is_blank(app):
        return None
    text = f"""
SELECT {SELECT_COLUMNS}
FROM {validate_table_name(table)}
WHERE app = %(app)s
  AND {_TIME_BOUNDS}
"""
    return MetricQuery(
        kind="window",
        text=text,
        params={"app": app, "start_ms": int(start_ms), "end_ms": int(end_ms)},
    )
