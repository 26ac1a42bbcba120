"""Table definitions for the metric store.

``app`` and ``resource`` lead the sort key; they are the record's two
indexed attributes. Everything else is a plain value column.
"""

METRIC_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS {table} (
    time DateTime64(3, 'UTC'),
    app LowCardinality(String),
    resource String,
    id Int64,
    created_at Int64,
    modified_at Int64,
    pass_count Int64,
    success_count Int64,
    block_count Int64,
    exception_count Int64,
    rt Float64,
    count Int32,
    resource_code Int32
) ENGINE = MergeTree()
PARTITION BY toYYYYMMDD(time)
ORDER BY (app, resource, time)
"""


def metric_table_ddls(table: str) -> list[str]:
    return [METRIC_TABLE_DDL.format(table=table)]
