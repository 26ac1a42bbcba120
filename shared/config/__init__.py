"""Shared configuration base classes.

Provides the common configuration patterns reused by the service settings so
logging and store connection options are declared in one place.
"""

from pydantic_settings import BaseSettings


class BaseLoggingConfig(BaseSettings):
    """Common logging configuration."""

    app_log_level: str = "INFO"
    app_log_redaction_patterns: list[str] = [
        "password",
        "token",
        "secret",
        "key",
        "authorization",
        "cookie",
        "session",
    ]
    app_environment: str = "production"


class BaseClickHouseConfig(BaseSettings):
    """ClickHouse connection settings (native protocol)."""

    clickhouse_host: str = "clickhouse"
    clickhouse_port: int = 9000
    clickhouse_db: str = "sentinel"
    clickhouse_user: str = "default"
    clickhouse_password: str = ""
    clickhouse_connect_timeout: float = 10.0
    clickhouse_send_receive_timeout: float = 300.0


class BaseServiceConfig(BaseLoggingConfig, BaseClickHouseConfig):
    """Base configuration combining logging and ClickHouse settings.

    The service_name should be overridden by the service.
    """

    service_name: str = "unknown"


__all__ = ["BaseLoggingConfig", "BaseClickHouseConfig", "BaseServiceConfig"]
