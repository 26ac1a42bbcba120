"""Shared utilities and components for the metrics repository."""

from .config import BaseClickHouseConfig, BaseLoggingConfig, BaseServiceConfig

__all__ = [
    "BaseServiceConfig",
    "BaseLoggingConfig",
    "BaseClickHouseConfig",
]
