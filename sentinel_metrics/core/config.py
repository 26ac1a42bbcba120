from shared.config import BaseServiceConfig


class Settings(BaseServiceConfig):
    # Store layout
    clickhouse_metric_table: str = "sentinel_metric"
    clickhouse_ensure_schema: bool = True
    clickhouse_schema_retries: int = 5

    # Ranking
    metrics_hot_window_ms: int = 60_000

    service_name: str = "sentinel_metrics"


settings = Settings()
