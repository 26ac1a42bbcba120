import os
import uuid

import pytest
from clickhouse_driver import Client

from sentinel_metrics.core.config import Settings
from sentinel_metrics.infrastructure.clickhouse.client import ClickHouseMetricStore
from sentinel_metrics.repository.metrics_repository import MetricsRepository

# ClickHouse connection defaults
CLICKHOUSE_HOST = os.getenv("CLICKHOUSE_HOST", "localhost")
CLICKHOUSE_PORT = int(os.getenv("CLICKHOUSE_PORT", "9000"))
CLICKHOUSE_DB = os.getenv("CLICKHOUSE_DB", "default")
CLICKHOUSE_USER = os.getenv("CLICKHOUSE_USER", "default")
CLICKHOUSE_PASS = os.getenv("CLICKHOUSE_PASS", "")


@pytest.fixture(scope="session")
def clickhouse_client():
    """Session-scoped ClickHouse client, only when CLICKHOUSE_E2E=1."""
    if os.getenv("CLICKHOUSE_E2E") != "1":
        pytest.skip("set CLICKHOUSE_E2E=1 to run against a live ClickHouse")
    client = Client(
        host=CLICKHOUSE_HOST,
        port=CLICKHOUSE_PORT,
        user=CLICKHOUSE_USER,
        password=CLICKHOUSE_PASS,
        database=CLICKHOUSE_DB,
    )
    try:
        client.execute("SELECT 1")
    except Exception as e:  # pragma: no cover - infrastructure failure
        pytest.exit(
            f"Cannot connect to ClickHouse at {CLICKHOUSE_HOST}:{CLICKHOUSE_PORT}: {e}"
        )
    yield client
    client.disconnect()


@pytest.fixture
def repository(clickhouse_client):
    """Repository over a throwaway table that is dropped after the test."""
    table = f"sentinel_metric_e2e_{uuid.uuid4().hex[:8]}"
    cfg = Settings(
        clickhouse_host=CLICKHOUSE_HOST,
        clickhouse_port=CLICKHOUSE_PORT,
        clickhouse_db=CLICKHOUSE_DB,
        clickhouse_user=CLICKHOUSE_USER,
        clickhouse_password=CLICKHOUSE_PASS,
        clickhouse_metric_table=table,
    )
    store = ClickHouseMetricStore(config=cfg)
    assert store.ensure_schema(retries=1)
    yield MetricsRepository(store)
    store.close()
    clickhouse_client.execute(f"DROP TABLE IF EXISTS {table}")
