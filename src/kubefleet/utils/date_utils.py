"""
Timestamp helpers. Every timestamp KubeFleet stores or returns is an aware UTC datetime.
"""

from datetime import datetime, timezone
from typing import Optional, Union


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Union[datetime, str]) -> datetime:
    """
    Converts a datetime, or an ISO 8601 string, to an aware UTC datetime.
    Naive values are taken to be UTC already.

    Raises:
        ValueError: If a string cannot be parsed.
    """
    if isinstance(value, str):
        parsed = parse_iso_date(value)
        if parsed is None:
            raise ValueError(f"Invalid date string: {value}")
        return parsed
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_iso_date(value: Union[datetime, str, None]) -> Optional[datetime]:
    """
    Parses timestamps as they come back from the API server or from a
    SQLite TEXT column. A trailing 'Z' is accepted on every Python version.

    Returns:
        An aware UTC datetime, or None for empty or unparseable input.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serializes a datetime as a UTC ISO 8601 string, keeping None as None."""
    return None if value is None else ensure_utc(value).isoformat()
