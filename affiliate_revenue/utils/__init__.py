"""Utility modules."""

from affiliate_revenue.utils.datetime_utils import ensure_aware, parse_timestamp, utc_now
from affiliate_revenue.utils.exceptions import (
    MUST_LOG,
    MUST_RAISE,
    SAFE_TO_IGNORE,
    RemoteLookupError,
    is_safe_to_ignore,
    must_log,
    must_raise,
)

__all__ = [
    "utc_now",
    "ensure_aware",
    "parse_timestamp",
    "RemoteLookupError",
    "SAFE_TO_IGNORE",
    "MUST_LOG",
    "MUST_RAISE",
    "is_safe_to_ignore",
    "must_log",
    "must_raise",
]
