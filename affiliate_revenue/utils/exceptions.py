"""
Exception handling utilities.

Defines categorized exception types for proper error handling.
"""

import asyncio

import aiohttp
from sqlalchemy.exc import OperationalError


class RemoteLookupError(Exception):
    """Raised when a remote metadata lookup fails."""

    def __init__(self, transaction_id: str, reason: str) -> None:
        self.transaction_id = transaction_id
        self.reason = reason
        super().__init__(f"Lookup for {transaction_id} failed: {reason}")


# Exception categories based on handling strategy

# Safe to ignore - operations that fail gracefully
SAFE_TO_IGNORE = (
    asyncio.CancelledError,  # Abandoned awaits are simply dropped
)

# Must log but can continue - non-critical failures
MUST_LOG = (
    OperationalError,        # Backend store errors (chunk isolated)
    aiohttp.ClientError,     # Processor / webhook transport errors
    asyncio.TimeoutError,    # ClientTimeout expiry
    RemoteLookupError,       # Lookup failures fall through to defaults
)

# Must raise - programming errors
MUST_RAISE = (
    ValueError,        # Unknown category token, invalid group_by
    TypeError,         # Type errors in critical paths
)


def is_safe_to_ignore(exc: BaseException) -> bool:
    """
    Check if exception can be safely ignored.

    Args:
        exc: Exception to check

    Returns:
        True if exception is safe to ignore
    """
    return isinstance(exc, SAFE_TO_IGNORE)


def must_log(exc: BaseException) -> bool:
    """
    Check if exception must be logged.

    Args:
        exc: Exception to check

    Returns:
        True if exception must be logged
    """
    return isinstance(exc, MUST_LOG)


def must_raise(exc: BaseException) -> bool:
    """
    Check if exception must be raised.

    Args:
        exc: Exception to check

    Returns:
        True if exception must be raised
    """
    return isinstance(exc, MUST_RAISE)
