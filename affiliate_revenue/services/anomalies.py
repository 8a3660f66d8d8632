"""
Anomaly log.

Data-quality problems never raise out of resolution or aggregation.
They fall through to a safer value and are recorded here so operators
can see how often each one happens.
"""

from collections import Counter
from enum import StrEnum
from typing import Any

from loguru import logger


class AnomalyKind(StrEnum):
    """Kinds of data-quality anomalies."""

    LOOKUP_FAILED = "lookup_failed"
    MISSING_EXCHANGE_RATE = "missing_exchange_rate"
    STRIPE_WITHOUT_TRANSACTION = "stripe_without_transaction"
    UNKNOWN_RAIL = "unknown_rail"
    UNKNOWN_PAYMENT_REQUEST_STATUS = "unknown_payment_request_status"
    SCHOLARSHIP_FLAG_MISMATCH = "scholarship_flag_mismatch"
    BATCH_CHUNK_FAILED = "batch_chunk_failed"
    USER_RESOLUTION_FAILED = "user_resolution_failed"
    SOURCE_READ_FAILED = "source_read_failed"


class AnomalyLog:
    """Counts anomalies by kind and logs each occurrence."""

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()
        self.logger = logger.bind(service="AnomalyLog")

    def record(self, kind: AnomalyKind, message: str, **context: Any) -> None:
        """
        Record one anomaly occurrence.

        Args:
            kind: Anomaly kind
            message: Human readable description
            **context: Identifiers for the affected record
        """
        self._counts[kind] += 1
        self.logger.bind(**context).warning(f"[{kind}] {message}")

    def count(self, kind: AnomalyKind) -> int:
        return self._counts[kind]

    def snapshot(self) -> dict[str, int]:
        """Current counters as a plain dict."""
        return dict(self._counts)

    def reset(self) -> None:
        self._counts.clear()
