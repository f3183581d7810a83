"""
Column mapping shared by the relational node stores.
"""

import json
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping

from ..models.node import OBSERVED_FIELDS, WorkerNode
from ..utils.date_utils import parse_iso_date, to_iso, utc_now

COLUMNS = tuple(WorkerNode.model_fields)
JSON_COLUMNS = ("labels", "taints")
BOOL_COLUMNS = ("is_ready", "is_schedulable")
TIMESTAMP_COLUMNS = ("last_heartbeat", "last_health_check", "created_at", "updated_at")

# Refreshed on conflict by upsert(); everything else belongs to the existing row.
UPSERT_COLUMNS = OBSERVED_FIELDS + ("last_heartbeat", "updated_at")


def prepare_new(node: WorkerNode) -> WorkerNode:
    """Fills the store-owned fields of a record about to be inserted."""
    now = utc_now()
    return node.model_copy(
        update={
            "id": node.id or uuid.uuid4().hex,
            "created_at": node.created_at or now,
            "updated_at": now,
        }
    )


def to_db_value(column: str, value: Any, timestamps_as_text: bool = True) -> Any:
    if column in JSON_COLUMNS:
        return json.dumps(value if value is not None else ([] if column == "taints" else {}))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime) and timestamps_as_text:
        return to_iso(value)
    return value


def row_to_node(row: Mapping[str, Any]) -> WorkerNode:
    data: Dict[str, Any] = {}
    for column in COLUMNS:
        value = row[column]
        if column in JSON_COLUMNS:
            value = json.loads(value) if value else None
            if value is None:
                continue
        elif column in BOOL_COLUMNS:
            value = bool(value)
        elif column in TIMESTAMP_COLUMNS:
            value = parse_iso_date(value)
        if value is None and column not in TIMESTAMP_COLUMNS and column != "id":
            continue
        data[column] = value
    return WorkerNode(**data)
