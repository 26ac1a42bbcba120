from datetime import datetime
from typing import Any, Dict, TypedDict


class MetricTags(TypedDict):
    app: str
    resource: str


class MetricRecord(TypedDict):
    """Store-bound write record.

    Fields:
        time: Time index of the record (the sample's logical timestamp).
        tags: The two indexed attributes, ``app`` and ``resource``.
        fields: Every other value, keyed by store column name.
    """

    time: datetime
    tags: MetricTags
    fields: Dict[str, Any]
