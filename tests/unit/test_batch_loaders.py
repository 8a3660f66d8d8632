"""
Tests for chunked batch loaders.
"""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from affiliate_revenue.models.enums import FeeCategory
from affiliate_revenue.services.anomalies import AnomalyKind
from affiliate_revenue.services.batch import BatchLoader, BatchResult, chunked


def override_rows(chunk: list[str]) -> list[dict]:
    """One override row per requested user."""
    return [
        {"user_id": user_id, "scholarship_fee": Decimal("700"), "i20_control_fee": None}
        for user_id in chunk
    ]


@pytest.fixture
def loader(mock_session, cache, anomalies) -> BatchLoader:
    """Batch loader with 1000-key chunks and mocked repositories."""
    loader = BatchLoader(mock_session, cache, anomalies=anomalies, chunk_size=1000)
    loader.override_repo.get_for_users = AsyncMock(side_effect=override_rows)
    loader.payment_repo.get_payment_dates = AsyncMock(return_value=[])
    loader.payment_repo.get_by_users = AsyncMock(return_value=[])
    loader.coupon_repo.get_latest_by_users = AsyncMock(return_value={})
    loader.notification_repo.get_unread_counts = AsyncMock(return_value=[])
    return loader


class TestChunking:
    """Tests for chunk splitting."""

    def test_chunked(self) -> None:
        chunks = list(chunked(list(range(2500)), 1000))
        assert [len(c) for c in chunks] == [1000, 1000, 500]

    def test_chunked_empty(self) -> None:
        assert list(chunked([], 1000)) == []


class TestBatchResolveOverrides:
    """Tests for batch_resolve_overrides."""

    @pytest.mark.asyncio
    async def test_2500_ids_make_three_calls(self, loader: BatchLoader) -> None:
        user_ids = [f"user-{i:04d}" for i in range(2500)]

        result = await loader.batch_resolve_overrides(user_ids)

        calls = loader.override_repo.get_for_users.await_args_list
        assert [len(call.args[0]) for call in calls] == [1000, 1000, 500]
        assert set(result.results) == set(user_ids)
        assert result.errors == {}
        assert result.results["user-0001"].get(FeeCategory.SCHOLARSHIP) == Decimal("700")
        assert result.results["user-0001"].get(FeeCategory.I20_CONTROL) is None

    @pytest.mark.asyncio
    async def test_failed_chunk_goes_to_errors(self, loader: BatchLoader, anomalies) -> None:
        """A failing chunk does not stop the others."""
        calls = {"n": 0}

        async def flaky(chunk: list[str]) -> list[dict]:
            calls["n"] += 1
            if calls["n"] == 2:
                raise OperationalError("SELECT", {}, Exception("connection reset"))
            return override_rows(chunk)

        loader.override_repo.get_for_users = AsyncMock(side_effect=flaky)
        user_ids = [f"user-{i:04d}" for i in range(2500)]

        result = await loader.batch_resolve_overrides(user_ids)

        assert len(result.results) == 1500
        assert len(result.errors) == 1000
        assert "user-1000" in result.errors
        assert "user-1999" in result.errors
        assert set(result.results) | set(result.errors) == set(user_ids)
        assert anomalies.count(AnomalyKind.BATCH_CHUNK_FAILED) == 1

    @pytest.mark.asyncio
    async def test_partial_failure_is_not_cached(self, loader: BatchLoader, cache) -> None:
        loader.override_repo.get_for_users = AsyncMock(side_effect=RuntimeError("down"))

        result = await loader.batch_resolve_overrides(["a", "b"])

        assert result.ok is False
        assert cache.stats()["entries"] == 0

    @pytest.mark.asyncio
    async def test_ids_deduplicated_and_sorted(self, loader: BatchLoader) -> None:
        await loader.batch_resolve_overrides(["b", "a", "b"])
        loader.override_repo.get_for_users.assert_awaited_once_with(["a", "b"])

    @pytest.mark.asyncio
    async def test_success_is_cached(self, loader: BatchLoader) -> None:
        """Same ids in any order hit the cache."""
        first = await loader.batch_resolve_overrides(["a", "b"])
        second = await loader.batch_resolve_overrides(["b", "a"])

        assert loader.override_repo.get_for_users.await_count == 1
        assert second.results == first.results

    @pytest.mark.asyncio
    async def test_empty_ids(self, loader: BatchLoader) -> None:
        result = await loader.batch_resolve_overrides([])
        assert result == BatchResult()
        loader.override_repo.get_for_users.assert_not_awaited()


class TestBatchResolvePaymentDates:
    """Tests for batch_resolve_payment_dates."""

    @pytest.mark.asyncio
    async def test_keeps_most_recent_per_category(self, loader: BatchLoader) -> None:
        loader.payment_repo.get_payment_dates = AsyncMock(return_value=[
            {"user_id": "a", "fee_type": "scholarship", "payment_date": "2025-09-01T10:00:00Z"},
            {"user_id": "a", "fee_type": "scholarship", "payment_date": "2025-10-05T10:00:00Z"},
            {"user_id": "a", "fee_type": "i20_control_fee", "payment_date": datetime(2025, 8, 1)},
            {"user_id": "a", "fee_type": "tuition", "payment_date": "2025-10-05T10:00:00Z"},
            {"user_id": "b", "fee_type": "selection_process", "payment_date": None},
        ])

        result = await loader.batch_resolve_payment_dates(["a", "b"])

        assert result.results["a"] == {
            FeeCategory.SCHOLARSHIP: datetime(2025, 10, 5, 10, tzinfo=UTC),
            FeeCategory.I20_CONTROL: datetime(2025, 8, 1, tzinfo=UTC),
        }
        assert "b" not in result.results


class TestBatchLoadRecordedPayments:
    """Tests for batch_load_recorded_payments."""

    @pytest.mark.asyncio
    async def test_latest_payment_per_category(self, loader: BatchLoader) -> None:
        def row(amount: str, day: int, fee_type: str = "scholarship") -> MagicMock:
            payment = MagicMock()
            payment.user_id = "a"
            payment.fee_type = fee_type
            payment.payment_method = "zelle"
            payment.amount = Decimal(amount)
            payment.gross_amount_usd = None
            payment.payment_intent_id = None
            payment.payment_date = datetime(2025, 10, day, tzinfo=UTC)
            return payment

        loader.payment_repo.get_by_users = AsyncMock(return_value=[
            row("500", 1), row("550", 9), row("900", 3, "i20_control"), row("1", 2, "tuition"),
        ])

        result = await loader.batch_load_recorded_payments(["a"])

        payments = result.results["a"]
        assert payments[FeeCategory.SCHOLARSHIP].gross_amount == Decimal("550")
        assert payments[FeeCategory.I20_CONTROL].gross_amount == Decimal("900")
        assert set(payments) == {FeeCategory.SCHOLARSHIP, FeeCategory.I20_CONTROL}


class TestBatchLoadCouponRedemptions:
    """Tests for batch_load_coupon_redemptions."""

    @pytest.mark.asyncio
    async def test_tokens_translated_to_categories(self, loader: BatchLoader) -> None:
        usage = MagicMock()
        usage.fee_type = "scholarship_fee"
        usage.final_amount = Decimal("450")
        usage.used_at = datetime(2025, 11, 15, 10, tzinfo=UTC)
        usage.coupon_code = "PROMO"
        usage.original_amount = Decimal("900")
        usage.discount_amount = Decimal("450")
        usage.usage_metadata = {"is_validation": True}

        loader.coupon_repo.get_latest_by_users = AsyncMock(
            return_value={"a": {"scholarship_fee": usage}}
        )

        result = await loader.batch_load_coupon_redemptions(["a"])

        coupon = result.results["a"][FeeCategory.SCHOLARSHIP]
        assert coupon.final_amount == Decimal("450")
        assert coupon.is_validation is True


class TestBatchUnreadNotificationCounts:
    """Tests for batch_unread_notification_counts."""

    @pytest.mark.asyncio
    async def test_missing_recipients_have_zero(self, loader: BatchLoader) -> None:
        loader.notification_repo.get_unread_counts = AsyncMock(
            return_value=[{"admin_id": "admin-1", "unread_count": 4}]
        )

        result = await loader.batch_unread_notification_counts(["admin-1", "admin-2"])

        assert result.results == {"admin-1": 4, "admin-2": 0}


class TestProgrammingErrors:
    """Errors in our own code are not hidden as failed chunks."""

    @pytest.mark.asyncio
    async def test_value_error_propagates(self, loader: BatchLoader) -> None:
        loader.override_repo.get_for_users = AsyncMock(side_effect=ValueError("bad row"))

        with pytest.raises(ValueError, match="bad row"):
            await loader.batch_resolve_overrides(["a"])
