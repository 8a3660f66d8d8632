"""
Tests for FeeValueResolver.

Covers source precedence, coupon freshness, rail handling and the
fee stripping cutover.
"""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from affiliate_revenue.models.enums import FeeCategory, ResolutionSource, SystemVariant
from affiliate_revenue.services.anomalies import AnomalyKind
from affiliate_revenue.services.fees import FeeInputs, FeeOverrideSet, FeeValueResolver
from affiliate_revenue.services.payment_intent import PaymentIntentMetadata
from tests.conftest import CUTOVER, NOW


AFTER_CUTOVER = CUTOVER + timedelta(days=10)
BEFORE_CUTOVER = CUTOVER - timedelta(days=1)


def inputs_with(**kwargs) -> FeeInputs:
    """FeeInputs for user-1 with the given sources."""
    return FeeInputs(user_id="user-1", **kwargs)


class TestPrecedence:
    """Tests for source ordering."""

    @pytest.mark.asyncio
    async def test_override_wins_over_everything(
        self, resolver: FeeValueResolver, make_coupon, make_payment
    ) -> None:
        inputs = inputs_with(
            override=FeeOverrideSet("user-1", {FeeCategory.SCHOLARSHIP: Decimal("700")}),
            coupons={FeeCategory.SCHOLARSHIP: make_coupon()},
            payments={FeeCategory.SCHOLARSHIP: make_payment(rail="zelle")},
        )

        result = await resolver.resolve(inputs, FeeCategory.SCHOLARSHIP)

        assert result.amount == Decimal("700.00")
        assert result.source is ResolutionSource.OVERRIDE

    @pytest.mark.asyncio
    async def test_override_for_other_category_is_ignored(
        self, resolver: FeeValueResolver
    ) -> None:
        inputs = inputs_with(
            override=FeeOverrideSet("user-1", {FeeCategory.I20_CONTROL: Decimal("500")}),
        )

        result = await resolver.resolve(inputs, FeeCategory.SCHOLARSHIP)

        assert result.source is ResolutionSource.DEFAULT
        assert result.amount == Decimal("900.00")

    @pytest.mark.asyncio
    async def test_changed_override_changes_result(self, resolver: FeeValueResolver) -> None:
        """Resolution reads the override passed in, nothing is remembered."""
        inputs = inputs_with(
            override=FeeOverrideSet("user-1", {FeeCategory.SCHOLARSHIP: Decimal("700")}),
        )
        first = await resolver.resolve(inputs, FeeCategory.SCHOLARSHIP)

        inputs.override = FeeOverrideSet("user-1", {FeeCategory.SCHOLARSHIP: Decimal("650")})
        second = await resolver.resolve(inputs, FeeCategory.SCHOLARSHIP)

        assert first.amount == Decimal("700.00")
        assert second.amount == Decimal("650.00")

    @pytest.mark.asyncio
    async def test_fresh_coupon_beats_payment(
        self, resolver: FeeValueResolver, make_coupon, make_payment
    ) -> None:
        inputs = inputs_with(
            coupons={FeeCategory.SCHOLARSHIP: make_coupon(final_amount="450")},
            payments={FeeCategory.SCHOLARSHIP: make_payment(rail="zelle", amount="900")},
        )

        result = await resolver.resolve(inputs, FeeCategory.SCHOLARSHIP)

        assert result.amount == Decimal("450.00")
        assert result.source is ResolutionSource.COUPON

    @pytest.mark.asyncio
    async def test_stale_coupon_is_skipped(
        self, resolver: FeeValueResolver, make_coupon, make_payment
    ) -> None:
        """A 25-hour-old redemption no longer applies."""
        inputs = inputs_with(
            coupons={
                FeeCategory.SCHOLARSHIP: make_coupon(redeemed_at=NOW - timedelta(hours=25))
            },
            payments={FeeCategory.SCHOLARSHIP: make_payment(rail="zelle", amount="900")},
        )

        result = await resolver.resolve(inputs, FeeCategory.SCHOLARSHIP)

        assert result.amount == Decimal("900.00")
        assert result.source is ResolutionSource.RECORDED_PAYMENT

    @pytest.mark.asyncio
    async def test_validation_coupon_never_expires(
        self, resolver: FeeValueResolver, make_coupon
    ) -> None:
        coupon = make_coupon(
            redeemed_at=NOW - timedelta(days=90), metadata={"is_validation": True}
        )
        inputs = inputs_with(coupons={FeeCategory.SCHOLARSHIP: coupon})

        result = await resolver.resolve(inputs, FeeCategory.SCHOLARSHIP)

        assert result.source is ResolutionSource.COUPON

    def test_coupon_freshness_boundary(self, resolver: FeeValueResolver, make_coupon) -> None:
        assert resolver.is_coupon_fresh(make_coupon(redeemed_at=NOW - timedelta(hours=23)))
        assert not resolver.is_coupon_fresh(make_coupon(redeemed_at=NOW - timedelta(hours=24)))

    @pytest.mark.asyncio
    async def test_default_uses_variant_and_dependents(
        self, resolver: FeeValueResolver
    ) -> None:
        """Legacy selection process with 3 dependents: 400 + 3 * 150."""
        inputs = inputs_with(variant=SystemVariant.LEGACY, dependents=3)

        result = await resolver.resolve(inputs, FeeCategory.SELECTION_PROCESS)

        assert result.amount == Decimal("850.00")
        assert result.source is ResolutionSource.DEFAULT

    @pytest.mark.asyncio
    async def test_unknown_category_raises(self, resolver: FeeValueResolver) -> None:
        with pytest.raises(ValueError, match="Unknown fee category"):
            await resolver.resolve(inputs_with(), "tuition")

    @pytest.mark.asyncio
    async def test_backend_token_accepted(self, resolver: FeeValueResolver) -> None:
        result = await resolver.resolve(inputs_with(), "i20_control_fee")
        assert result.category is FeeCategory.I20_CONTROL


class TestPaymentRails:
    """Tests for amounts derived from recorded payments."""

    @pytest.mark.asyncio
    async def test_zelle_is_taken_as_is(
        self, resolver: FeeValueResolver, make_payment, lookup_client
    ) -> None:
        payment = make_payment(rail="zelle", amount="900", paid_at=AFTER_CUTOVER)

        assert await resolver.amount_from_payment(payment) == Decimal("900.00")
        lookup_client.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stripe_before_cutover_is_gross(
        self, resolver: FeeValueResolver, make_payment
    ) -> None:
        payment = make_payment(amount="1040.27", paid_at=BEFORE_CUTOVER)
        assert await resolver.amount_from_payment(payment) == Decimal("1040.27")

    @pytest.mark.asyncio
    async def test_stripe_card_after_cutover_is_net(
        self, resolver: FeeValueResolver, make_payment, lookup_client
    ) -> None:
        """1040.27 * 0.961 - 0.30 = 999.40."""
        payment = make_payment(amount="1040.27", paid_at=AFTER_CUTOVER)

        assert await resolver.amount_from_payment(payment) == Decimal("999.40")
        lookup_client.fetch.assert_awaited_once_with("pi_test")

    @pytest.mark.asyncio
    async def test_foreign_instant_rail_after_cutover(
        self, resolver: FeeValueResolver, make_payment, lookup_client
    ) -> None:
        """5600 BRL at 5.6 is 1000 USD, minus 1.8% instant rail fee."""
        lookup_client.fetch.return_value = PaymentIntentMetadata(
            original_currency="brl",
            is_instant_transfer_rail=True,
            exchange_rate=Decimal("5.6"),
        )
        payment = make_payment(amount="5600", paid_at=AFTER_CUTOVER)

        assert await resolver.amount_from_payment(payment) == Decimal("982.00")

    @pytest.mark.asyncio
    async def test_foreign_before_cutover_only_converts(
        self, resolver: FeeValueResolver, make_payment, lookup_client
    ) -> None:
        lookup_client.fetch.return_value = PaymentIntentMetadata(
            original_currency="brl",
            is_instant_transfer_rail=True,
            exchange_rate=Decimal("5.6"),
        )
        payment = make_payment(amount="5600", paid_at=BEFORE_CUTOVER)

        assert await resolver.amount_from_payment(payment) == Decimal("1000.00")

    @pytest.mark.asyncio
    async def test_pix_subtype_counts_as_instant(
        self, resolver: FeeValueResolver, make_payment, lookup_client
    ) -> None:
        lookup_client.fetch.return_value = PaymentIntentMetadata(
            original_currency="usd", rail_subtypes=("pix",)
        )
        payment = make_payment(amount="1000", paid_at=AFTER_CUTOVER)

        assert await resolver.amount_from_payment(payment) == Decimal("982.00")

    @pytest.mark.asyncio
    async def test_instant_flag_converts_whatever_the_currency(
        self, resolver: FeeValueResolver, make_payment, lookup_client
    ) -> None:
        lookup_client.fetch.return_value = PaymentIntentMetadata(
            original_currency="usd",
            is_instant_transfer_rail=True,
            exchange_rate=Decimal("5.6"),
        )
        payment = make_payment(amount="5600", paid_at=AFTER_CUTOVER)

        assert await resolver.amount_from_payment(payment) == Decimal("982.00")

    @pytest.mark.asyncio
    async def test_instant_flag_without_rate(
        self, resolver: FeeValueResolver, make_payment, lookup_client, anomalies
    ) -> None:
        lookup_client.fetch.return_value = PaymentIntentMetadata(
            original_currency="usd", is_instant_transfer_rail=True
        )

        assert await resolver.amount_from_payment(make_payment()) is None
        assert anomalies.count(AnomalyKind.MISSING_EXCHANGE_RATE) == 1

    @pytest.mark.asyncio
    async def test_net_reference_amount_after_cutover(
        self, resolver: FeeValueResolver, make_payment, lookup_client
    ) -> None:
        lookup_client.fetch.return_value = PaymentIntentMetadata(
            original_currency="brl",
            exchange_rate=Decimal("5.6"),
            net_reference_amount=Decimal("975.50"),
        )
        payment = make_payment(amount="5600", paid_at=AFTER_CUTOVER)

        assert await resolver.amount_from_payment(payment) == Decimal("975.50")

    @pytest.mark.asyncio
    async def test_net_reference_amount_ignored_before_cutover(
        self, resolver: FeeValueResolver, make_payment, lookup_client
    ) -> None:
        lookup_client.fetch.return_value = PaymentIntentMetadata(
            original_currency="usd", net_reference_amount=Decimal("975.50")
        )
        payment = make_payment(amount="1040.27", paid_at=BEFORE_CUTOVER)

        assert await resolver.amount_from_payment(payment) == Decimal("1040.27")

    @pytest.mark.asyncio
    async def test_always_strategy_strips_old_payments(
        self, lookup_client, anomalies, make_payment
    ) -> None:
        from affiliate_revenue.services.fees import FeeStrippingPolicy

        resolver = FeeValueResolver(
            lookup_client=lookup_client,
            policy=FeeStrippingPolicy(cutover=CUTOVER, strategy="always"),
            anomalies=anomalies,
            clock=lambda: NOW,
        )
        payment = make_payment(amount="1040.27", paid_at=BEFORE_CUTOVER)

        assert await resolver.amount_from_payment(payment) == Decimal("999.40")


class TestAnomalies:
    """Unresolvable payments fall back to the default and are recorded."""

    @pytest.mark.asyncio
    async def test_missing_exchange_rate(
        self, resolver: FeeValueResolver, make_payment, lookup_client, anomalies
    ) -> None:
        lookup_client.fetch.return_value = PaymentIntentMetadata(original_currency="brl")
        inputs = inputs_with(
            payments={FeeCategory.SCHOLARSHIP: make_payment(amount="5600")}
        )

        result = await resolver.resolve(inputs, FeeCategory.SCHOLARSHIP)

        assert result.source is ResolutionSource.DEFAULT
        assert result.amount == Decimal("900.00")
        assert anomalies.count(AnomalyKind.MISSING_EXCHANGE_RATE) == 1

    @pytest.mark.asyncio
    async def test_zero_exchange_rate(
        self, resolver: FeeValueResolver, make_payment, lookup_client, anomalies
    ) -> None:
        lookup_client.fetch.return_value = PaymentIntentMetadata(
            original_currency="brl", exchange_rate=Decimal("0")
        )

        assert await resolver.amount_from_payment(make_payment()) is None
        assert anomalies.count(AnomalyKind.MISSING_EXCHANGE_RATE) == 1

    @pytest.mark.asyncio
    async def test_lookup_failure(
        self, resolver: FeeValueResolver, make_payment, lookup_client, anomalies
    ) -> None:
        lookup_client.fetch.return_value = None
        inputs = inputs_with(payments={FeeCategory.SCHOLARSHIP: make_payment()})

        result = await resolver.resolve(inputs, FeeCategory.SCHOLARSHIP)

        assert result.source is ResolutionSource.DEFAULT
        assert anomalies.count(AnomalyKind.LOOKUP_FAILED) == 1

    @pytest.mark.asyncio
    async def test_stripe_without_transaction_id(
        self, resolver: FeeValueResolver, make_payment, lookup_client, anomalies
    ) -> None:
        payment = make_payment(transaction_id=None)

        assert await resolver.amount_from_payment(payment) is None
        assert anomalies.count(AnomalyKind.STRIPE_WITHOUT_TRANSACTION) == 1
        lookup_client.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_manual_rail_uses_default(
        self, resolver: FeeValueResolver, make_payment, anomalies
    ) -> None:
        inputs = inputs_with(
            payments={FeeCategory.SCHOLARSHIP: make_payment(rail="manual", amount="123")}
        )

        result = await resolver.resolve(inputs, FeeCategory.SCHOLARSHIP)

        assert result.source is ResolutionSource.DEFAULT
        assert anomalies.snapshot() == {}

    @pytest.mark.asyncio
    async def test_unknown_rail(
        self, resolver: FeeValueResolver, make_payment, anomalies
    ) -> None:
        assert await resolver.amount_from_payment(make_payment(rail="paypal")) is None
        assert anomalies.count(AnomalyKind.UNKNOWN_RAIL) == 1


class TestResolveMany:
    """Tests for resolve_many and gross_paid_amounts."""

    @pytest.mark.asyncio
    async def test_resolve_many(self, resolver: FeeValueResolver, make_payment) -> None:
        inputs = inputs_with(
            variant=SystemVariant.SIMPLIFIED,
            payments={FeeCategory.I20_CONTROL: make_payment(
                category=FeeCategory.I20_CONTROL, rail="zelle", amount="900"
            )},
        )

        results = await resolver.resolve_many(
            inputs, ["selection_process", "scholarship_fee", FeeCategory.I20_CONTROL]
        )

        assert {c: r.amount for c, r in results.items()} == {
            FeeCategory.SELECTION_PROCESS: Decimal("350.00"),
            FeeCategory.SCHOLARSHIP: Decimal("550.00"),
            FeeCategory.I20_CONTROL: Decimal("900.00"),
        }

    @pytest.mark.asyncio
    async def test_lookups_run_concurrently(
        self, resolver: FeeValueResolver, make_payment, lookup_client
    ) -> None:
        """Each category still triggers its own lookup."""
        lookup_client.fetch = AsyncMock(
            return_value=PaymentIntentMetadata(original_currency="usd")
        )
        inputs = inputs_with(payments={
            FeeCategory.SCHOLARSHIP: make_payment(transaction_id="pi_a"),
            FeeCategory.I20_CONTROL: make_payment(
                category=FeeCategory.I20_CONTROL, transaction_id="pi_b"
            ),
        })

        await resolver.resolve_many(inputs, [FeeCategory.SCHOLARSHIP, FeeCategory.I20_CONTROL])

        assert sorted(c.args[0] for c in lookup_client.fetch.await_args_list) == ["pi_a", "pi_b"]

    def test_gross_paid_amounts(self, make_payment) -> None:
        payments = [
            make_payment(amount="5600", gross_usd="1000", paid_at=NOW - timedelta(days=2)),
            make_payment(amount="800", paid_at=NOW - timedelta(days=9)),
            make_payment(category=FeeCategory.I20_CONTROL, amount="900"),
        ]

        assert FeeValueResolver.gross_paid_amounts(payments) == {
            FeeCategory.SCHOLARSHIP: Decimal("1000.00"),
            FeeCategory.I20_CONTROL: Decimal("900.00"),
        }
