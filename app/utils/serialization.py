"""Serialization helpers for ORM rows.

Rows leave the API as plain JSON-safe dicts keyed by column name. The same
conversion backs the audit diff so that "changed" means "serializes
differently".
"""

import json
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (SQLite hands these back) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def json_safe(value: Any) -> Any:
    """Convert a column value into something json.dumps accepts."""
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {k: json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(v) for v in value]
    return value


def row_to_dict(row: Any, exclude: Iterable[str] = ()) -> Dict[str, Any]:
    """Column values of an ORM instance as a JSON-safe dict."""
    skipped = set(exclude)
    return {
        column.key: json_safe(getattr(row, column.key))
        for column in row.__table__.columns
        if column.key not in skipped
    }


def canonical_json(value: Any) -> str:
    """Stable JSON text used for structural equality."""
    return json.dumps(json_safe(value), sort_keys=True, default=str)
