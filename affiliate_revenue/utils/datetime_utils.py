"""
Datetime utilities.

Provides timezone-aware datetime functions.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def ensure_aware(value: datetime | None) -> datetime | None:
    """
    Treat naive datetimes as UTC.

    Backend rows and RPC payloads are not consistent about offsets;
    every comparison in the engine happens on aware values.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """
    Parse an ISO-8601 timestamp coming from an RPC payload.

    Returns:
        Aware datetime, or None for missing/unparsable values
    """
    if value is None or isinstance(value, datetime):
        return ensure_aware(value)
    try:
        # Backend emits a trailing Z which fromisoformat accepts since 3.11
        return ensure_aware(datetime.fromisoformat(value))
    except ValueError:
        return None
