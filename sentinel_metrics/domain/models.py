from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)


def now_millis() -> int:
    return int(time.time() * 1000)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_epoch_millis(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - EPOCH) // _ONE_MS


def from_epoch_millis(value: int) -> datetime:
    return EPOCH + timedelta(milliseconds=value)


def resource_hash(resource: str) -> int:
    """Signed 32-bit polynomial (x31) hash over UTF-16 code units.

    Stable across processes, unlike the builtin ``hash``, and equal to the
    resource codes Sentinel already stores for the same resource names.
    """
    data = resource.encode("utf-16-be")
    h = 0
    for i in range(0, len(data), 2):
        h = (31 * h + ((data[i] << 8) | data[i + 1])) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


class MetricSample(BaseModel):
    """One observation for one resource over one interval.

    ``resource_code`` is derived from ``resource`` on every read and has no
    setter, so the two can never drift apart. The ``add_*`` methods are only
    meant for aggregates built with :meth:`copy_for_aggregation`.
    """

    model_config = ConfigDict(validate_assignment=True)

    app: str
    resource: str
    id: Optional[int] = None
    timestamp: datetime = Field(default_factory=utcnow)
    created_at: datetime = Field(default_factory=utcnow)
    modified_at: datetime = Field(default_factory=utcnow)
    pass_count: int = Field(default=0, ge=0)
    success_count: int = Field(default=0, ge=0)
    block_count: int = Field(default=0, ge=0)
    exception_count: int = Field(default=0, ge=0)
    avg_rt: float = Field(default=0.0, ge=0)
    interval_count: int = Field(default=1, ge=1)

    @field_validator("timestamp", "created_at", "modified_at")
    @classmethod
    def _as_utc_millis(cls, value: datetime) -> datetime:
        # The store keeps millisecond precision; truncate so reads match writes.
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        else:
            value = value.astimezone(timezone.utc)
        return value.replace(microsecond=value.microsecond // 1000 * 1000)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def resource_code(self) -> int:
        return resource_hash(self.resource)

    def copy_for_aggregation(self) -> "MetricSample":
        return self.model_copy(deep=True)

    def add_pass(self, count: int) -> None:
        self.pass_count += count

    def add_block(self, count: int) -> None:
        self.block_count += count

    def add_exception(self, count: int) -> None:
        self.exception_count += count

    def add_rt_and_success(self, avg_rt: float, success: int) -> None:
        # Average weighted by success count; unchanged when neither side has any.
        total = self.success_count + success
        if total > 0:
            self.avg_rt = (self.avg_rt * self.success_count + avg_rt * success) / total
        self.success_count = total

    def add_interval(self, count: int = 1) -> None:
        self.interval_count += count


def is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()
