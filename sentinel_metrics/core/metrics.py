"""Prometheus metrics for the metrics repository.

The error counters are the operator-facing signal for writes and rows that
the store boundary drops without telling the caller.
"""

from shared.metrics import get_counter, get_histogram

from .config import settings

_SERVICE = settings.service_name

SAMPLES_WRITTEN = get_counter(
    "samples_written_total", "Metric samples handed to the store", _SERVICE
)
STORE_WRITE_ERRORS = get_counter(
    "store_write_errors_total", "Writes dropped after a store failure", _SERVICE
)
STORE_QUERY_ERRORS = get_counter(
    "store_query_errors_total", "Queries that failed at the store boundary", _SERVICE
)
ROW_DECODE_ERRORS = get_counter(
    "row_decode_errors_total", "Result rows skipped because they failed to decode", _SERVICE
)
QUERY_LATENCY = get_histogram(
    "query_latency_seconds",
    "Time spent executing and draining a store query",
    _SERVICE,
    labelnames=("kind",),
)
