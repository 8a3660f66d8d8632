"""
Batch loaders.

Replace per-user fan-out with chunked multi-key backend calls. Keys are
de-duplicated and sorted, split into chunks, and each chunk is one call.
A failing chunk is logged and its keys land in `errors`; the remaining
chunks still load. Fully successful batches are cached.
"""

from collections.abc import Awaitable, Callable, Hashable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_revenue.config.settings import settings
from affiliate_revenue.models.enums import FeeCategory
from affiliate_revenue.repositories import (
    CouponUsageRepository,
    FeeOverrideRepository,
    FeePaymentRepository,
    NotificationRepository,
)
from affiliate_revenue.services.anomalies import AnomalyKind, AnomalyLog
from affiliate_revenue.services.cache import ResultCache
from affiliate_revenue.services.fees.category_mapping import from_backend_token
from affiliate_revenue.services.fees.models import (
    CouponRedemption,
    FeeOverrideSet,
    RecordedPayment,
)
from affiliate_revenue.utils.datetime_utils import parse_timestamp
from affiliate_revenue.utils.exceptions import must_log, must_raise


K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class BatchResult(Generic[K, V]):
    """
    Outcome of a batch load.

    Attributes:
        results: Loaded values per key
        errors: Error message per key whose chunk failed
    """

    results: dict[K, V] = field(default_factory=dict)
    errors: dict[K, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def chunked(keys: list[K], size: int) -> Iterable[list[K]]:
    """Split keys into consecutive chunks of at most `size`."""
    for start in range(0, len(keys), size):
        yield keys[start:start + size]


class BatchLoader:
    """
    Chunked loaders for cohort-sized lookups.

    Chunks are loaded sequentially so a large cohort never opens more
    than one backend call at a time.
    """

    def __init__(
        self,
        session: AsyncSession,
        cache: ResultCache,
        anomalies: AnomalyLog | None = None,
        chunk_size: int | None = None,
    ) -> None:
        """
        Initialize loader.

        Args:
            session: Async database session
            cache: Shared result cache
            anomalies: Anomaly log for failed chunks
            chunk_size: Keys per backend call, defaults to settings
        """
        self.cache = cache
        self.anomalies = anomalies or AnomalyLog()
        self.chunk_size = chunk_size or settings.batch_chunk_size
        self.override_repo = FeeOverrideRepository(session)
        self.payment_repo = FeePaymentRepository(session)
        self.coupon_repo = CouponUsageRepository(session)
        self.notification_repo = NotificationRepository(session)
        self.logger = logger.bind(service="BatchLoader")

    async def load(
        self,
        function_name: str,
        keys: Iterable[K],
        fetch_chunk: Callable[[list[K]], Awaitable[dict[K, V]]],
    ) -> BatchResult[K, V]:
        """
        Load keys chunk by chunk and merge the results.

        Args:
            function_name: Backend function name (cache key and TTL)
            keys: Keys to load
            fetch_chunk: Loads one chunk, returns values per key

        Returns:
            BatchResult with merged results and per-key errors
        """
        ordered = sorted(set(keys))
        if not ordered:
            return BatchResult()

        params = {"ids": ordered}
        cached = self.cache.get(function_name, params)
        if cached is not None:
            return BatchResult(results=dict(cached))

        batch: BatchResult[K, V] = BatchResult()
        for index, chunk in enumerate(chunked(ordered, self.chunk_size)):
            try:
                batch.results.update(await fetch_chunk(chunk))
            except Exception as e:
                if must_raise(e):
                    raise
                if not must_log(e):
                    self.logger.exception(f"Unexpected error in {function_name} chunk {index}")
                self.anomalies.record(
                    AnomalyKind.BATCH_CHUNK_FAILED,
                    f"{function_name} chunk {index} failed: {e}",
                    chunk_size=len(chunk),
                )
                for key in chunk:
                    batch.errors[key] = str(e)

        if batch.ok:
            self.cache.set(function_name, dict(batch.results), params)
        else:
            self.logger.warning(
                f"{function_name}: {len(batch.errors)}/{len(ordered)} keys failed"
            )
        return batch

    async def batch_resolve_overrides(
        self, user_ids: Iterable[str]
    ) -> BatchResult[str, FeeOverrideSet]:
        """Fee overrides per user. Users without overrides are absent."""

        async def fetch(chunk: list[str]) -> dict[str, FeeOverrideSet]:
            rows = await self.override_repo.get_for_users(chunk)
            return {
                row["user_id"]: FeeOverrideSet.from_row(row["user_id"], row)
                for row in rows
            }

        return await self.load("get_user_fee_overrides_batch", user_ids, fetch)

    async def batch_resolve_payment_dates(
        self, user_ids: Iterable[str]
    ) -> BatchResult[str, dict[FeeCategory, datetime]]:
        """Most recent payment date per user and category."""

        async def fetch(chunk: list[str]) -> dict[str, dict[FeeCategory, datetime]]:
            rows = await self.payment_repo.get_payment_dates(chunk)
            dates: dict[str, dict[FeeCategory, datetime]] = {}
            for row in rows:
                category = from_backend_token(row.get("fee_type"))
                paid_at = parse_timestamp(row.get("payment_date"))
                if category is None or paid_at is None:
                    continue
                per_user = dates.setdefault(row["user_id"], {})
                if category not in per_user or paid_at > per_user[category]:
                    per_user[category] = paid_at
            return dates

        return await self.load("get_payment_dates_batch", user_ids, fetch)

    async def batch_load_recorded_payments(
        self, user_ids: Iterable[str]
    ) -> BatchResult[str, dict[FeeCategory, RecordedPayment]]:
        """Most recent recorded payment per user and category."""

        async def fetch(chunk: list[str]) -> dict[str, dict[FeeCategory, RecordedPayment]]:
            records = await self.payment_repo.get_by_users(chunk)
            return latest_payments(
                payment
                for payment in map(RecordedPayment.from_record, records)
                if payment is not None
            )

        return await self.load("individual_fee_payments", user_ids, fetch)

    async def batch_load_coupon_redemptions(
        self, user_ids: Iterable[str]
    ) -> BatchResult[str, dict[FeeCategory, CouponRedemption]]:
        """Most recent coupon redemption per user and category."""

        async def fetch(chunk: list[str]) -> dict[str, dict[FeeCategory, CouponRedemption]]:
            latest = await self.coupon_repo.get_latest_by_users(chunk)
            return {user_id: coupons_by_category(usages) for user_id, usages in latest.items()}

        return await self.load("promotional_coupon_usage", user_ids, fetch)

    async def batch_unread_notification_counts(
        self, recipient_ids: Iterable[str]
    ) -> BatchResult[str, int]:
        """Unread notification count per recipient; absent recipients have 0."""

        async def fetch(chunk: list[str]) -> dict[str, int]:
            rows = await self.notification_repo.get_unread_counts(chunk)
            counts = {recipient_id: 0 for recipient_id in chunk}
            for row in rows:
                counts[row["admin_id"]] = int(row.get("unread_count") or 0)
            return counts

        return await self.load("get_unread_notifications_batch", recipient_ids, fetch)


def latest_payments(
    payments: Iterable[RecordedPayment],
) -> dict[str, dict[FeeCategory, RecordedPayment]]:
    """Group payments per user and keep the most recent per category."""
    latest: dict[str, dict[FeeCategory, RecordedPayment]] = {}
    for payment in payments:
        per_user = latest.setdefault(payment.user_id, {})
        current = per_user.get(payment.category)
        if current is None or payment.paid_at > current.paid_at:
            per_user[payment.category] = payment
    return latest


def coupons_by_category(usages: dict[str, Any]) -> dict[FeeCategory, CouponRedemption]:
    """
    Translate latest-per-fee_type coupon rows into categories.

    Two backend tokens can map to one category; the newer redemption wins.
    """
    coupons: dict[FeeCategory, CouponRedemption] = {}
    for fee_type, usage in usages.items():
        category = from_backend_token(fee_type)
        if category is None:
            continue
        coupon = CouponRedemption.from_record(usage)
        current = coupons.get(category)
        if current is None or coupon.redeemed_at > current.redeemed_at:
            coupons[category] = coupon
    return coupons
