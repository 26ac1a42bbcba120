import pytest

from sentinel_metrics.infrastructure.clickhouse.queries import (
    SELECT_COLUMNS,
    range_query,
    validate_table_name,
    window_query,
)


class TestRangeQuery:
    def test_projects_fixed_columns_newest_first(self):
        q = range_query("sentinel_metric", "app", "res", 1000, 2000)
        assert q is not None
        assert q.kind == "range"
        assert f"SELECT {SELECT_COLUMNS}" in q.text
        assert SELECT_COLUMNS.startswith("time, app, resource, id,")
        assert "FROM sentinel_metric" in q.text
        assert "app = %(app)s" in q.text
        assert "resource = %(resource)s" in q.text
        assert "time >= fromUnixTimestamp64Milli(toInt64(%(start_ms)s))" in q.text
        assert "time <= fromUnixTimestamp64Milli(toInt64(%(end_ms)s))" in q.text
        assert q.text.strip().endswith("ORDER BY time DESC")
        assert q.params == {
            "app": "app",
            "resource": "res",
            "start_ms": 1000,
            "end_ms": 2000,
        }

    @pytest.mark.parametrize(
        "app,resource", [("", "res"), ("app", ""), ("  ", "res"), ("app", None)]
    )
    def test_blank_identifiers_produce_no_query(self, app, resource):
        assert range_query("sentinel_metric", app, resource, 0, 1) is None

    def test_quotes_stay_out_of_query_text(self):
        hostile = "x' OR '1'='1"
        q = range_query("sentinel_metric", hostile, "r' --", 0, 1)
        assert q is not None
        assert hostile not in q.text
        assert "'1'='1" not in q.text
        assert q.params["app"] == hostile
        assert q.params["resource"] == "r' --"


class TestWindowQuery:
    def test_filters_app_and_window_without_ordering(self):
        q = window_query("sentinel_metric", "app", 40_000, 100_000)
        assert q is not None
        assert q.kind == "window"
        assert "resource =" not in q.text
        assert "ORDER BY" not in q.text
        assert q.params == {"app": "app", "start_ms": 40_000, "end_ms": 100_000}

    def test_blank_app_produces_no_query(self):
        assert window_query("sentinel_metric", " ", 0, 1) is None


class TestTableName:
    def test_accepts_identifier(self):
        assert validate_table_name("sentinel_metric_v1") == "sentinel_metric_v1"

    @pytest.mark.parametrize("name", ["", "metric; DROP TABLE x", "1abc", "a.b", None])
    def test_rejects_non_identifiers(self, name):
        with pytest.raises(ValueError):
            validate_table_name(name)
