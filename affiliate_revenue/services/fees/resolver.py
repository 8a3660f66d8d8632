"""
Fee value resolver.

Single source of truth for "how much did this user pay for this fee".
Sources are tried in strict order and the first that yields a value wins:

    1. Fee override (admin-set per user)
    2. Fresh promotional coupon redemption
    3. Most recent recorded payment
    4. Default amount for the user's system variant

Every aggregation path goes through this resolver.
"""

import asyncio
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from decimal import Decimal

from loguru import logger

from affiliate_revenue.config.constants import COUPON_FRESHNESS_HOURS
from affiliate_revenue.models.enums import FeeCategory, PaymentRail, ResolutionSource
from affiliate_revenue.services.anomalies import AnomalyKind, AnomalyLog
from affiliate_revenue.services.fees.category_mapping import parse_category
from affiliate_revenue.services.fees.fee_policy import FeeStrippingPolicy
from affiliate_revenue.services.fees.models import (
    CouponRedemption,
    FeeInputs,
    RecordedPayment,
    ResolvedAmount,
)
from affiliate_revenue.services.payment_intent import PaymentIntentClient
from affiliate_revenue.utils.datetime_utils import ensure_aware, utc_now
from fee_calculator import FeeCalculator, default_fee_amount, round_cents


class FeeValueResolver:
    """Resolves one amount per (user, category) by precedence."""

    def __init__(
        self,
        lookup_client: PaymentIntentClient,
        policy: FeeStrippingPolicy,
        calculator: FeeCalculator | None = None,
        anomalies: AnomalyLog | None = None,
        reference_currency: str = "usd",
        coupon_freshness: timedelta = timedelta(hours=COUPON_FRESHNESS_HOURS),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize resolver.

        Args:
            lookup_client: Payment intent metadata client
            policy: Fee stripping cutover policy
            calculator: Processor fee calculator
            anomalies: Anomaly log shared with the caller
            reference_currency: Currency every amount is expressed in
            coupon_freshness: How long a redemption stays applicable
            clock: Returns the current aware datetime
        """
        self.lookup_client = lookup_client
        self.policy = policy
        self.calculator = calculator or FeeCalculator()
        self.anomalies = anomalies or AnomalyLog()
        self.reference_currency = reference_currency.lower()
        self.coupon_freshness = coupon_freshness
        self.clock = clock
        self.logger = logger.bind(service="FeeValueResolver")

    async def resolve(
        self,
        inputs: FeeInputs,
        category: FeeCategory | str,
    ) -> ResolvedAmount:
        """
        Resolve the amount for one category.

        Args:
            inputs: Pre-loaded data for the user
            category: Fee category (canonical name or backend token)

        Returns:
            ResolvedAmount, never negative, in reference currency

        Raises:
            ValueError: If category is unknown
        """
        category = parse_category(category)

        if inputs.override is not None:
            override = inputs.override.get(category)
            if override is not None:
                return self._result(inputs, category, override, ResolutionSource.OVERRIDE)

        coupon = inputs.coupons.get(category)
        if coupon is not None and self.is_coupon_fresh(coupon):
            return self._result(inputs, category, coupon.final_amount, ResolutionSource.COUPON)

        payment = inputs.payments.get(category)
        if payment is not None:
            amount = await self.amount_from_payment(payment)
            if amount is not None:
                return self._result(
                    inputs, category, amount, ResolutionSource.RECORDED_PAYMENT
                )

        default = default_fee_amount(category.value, inputs.variant.value, inputs.dependents)
        return self._result(inputs, category, default, ResolutionSource.DEFAULT)

    async def resolve_many(
        self,
        inputs: FeeInputs,
        categories: Iterable[FeeCategory | str],
    ) -> dict[FeeCategory, ResolvedAmount]:
        """Resolve several categories for one user concurrently."""
        parsed = list(dict.fromkeys(parse_category(c) for c in categories))
        resolved = await asyncio.gather(*(self.resolve(inputs, c) for c in parsed))
        return dict(zip(parsed, resolved))

    def is_coupon_fresh(self, coupon: CouponRedemption) -> bool:
        """Validation redemptions are always fresh; others for a limited window."""
        if coupon.is_validation:
            return True
        return self.clock() - ensure_aware(coupon.redeemed_at) < self.coupon_freshness

    async def amount_from_payment(self, payment: RecordedPayment) -> Decimal | None:
        """
        Reference-currency amount of a recorded payment.

        Returns:
            Amount, or None when the payment cannot be valued and the
            default should apply
        """
        rail = payment.payment_rail

        if rail == PaymentRail.ZELLE:
            # Ledger entries are already net and in reference currency
            return round_cents(payment.gross_amount)

        if rail == PaymentRail.STRIPE:
            if not payment.processor_transaction_id:
                self.anomalies.record(
                    AnomalyKind.STRIPE_WITHOUT_TRANSACTION,
                    "Processor payment has no transaction id, currency unknown",
                    user_id=payment.user_id,
                    category=payment.category.value,
                )
                return None
            return await self._amount_from_processor(payment)

        if rail == PaymentRail.MANUAL:
            return None

        self.anomalies.record(
            AnomalyKind.UNKNOWN_RAIL,
            f"Unknown payment rail {payment.rail!r}",
            user_id=payment.user_id,
            category=payment.category.value,
        )
        return None

    async def _amount_from_processor(self, payment: RecordedPayment) -> Decimal | None:
        transaction_id = payment.processor_transaction_id
        metadata = await self.lookup_client.fetch(transaction_id)
        if metadata is None:
            self.anomalies.record(
                AnomalyKind.LOOKUP_FAILED,
                f"No metadata for {transaction_id}",
                user_id=payment.user_id,
                category=payment.category.value,
            )
            return None

        strip = self.policy.should_strip(payment.paid_at)

        if strip and metadata.net_reference_amount is not None:
            return round_cents(metadata.net_reference_amount)

        gross = payment.gross_amount
        # Flagged instant-rail amounts are recorded in the foreign currency
        if (
            metadata.original_currency != self.reference_currency
            or metadata.is_instant_transfer_rail
        ):
            rate = metadata.exchange_rate
            if rate is None or rate <= 0:
                self.anomalies.record(
                    AnomalyKind.MISSING_EXCHANGE_RATE,
                    f"{metadata.original_currency} charge {transaction_id} has no usable exchange rate",
                    user_id=payment.user_id,
                    category=payment.category.value,
                )
                return None
            gross = self.calculator.convert(gross, rate)

        if strip:
            return self.calculator.net_from_gross(gross, metadata.uses_instant_rail)
        return round_cents(gross)

    @staticmethod
    def gross_paid_amounts(
        payments: Iterable[RecordedPayment],
    ) -> dict[FeeCategory, Decimal]:
        """
        Gross reference-currency amount per category, most recent payment wins.

        Used by payment management views that show what the student was
        charged rather than what was received.
        """
        latest: dict[FeeCategory, RecordedPayment] = {}
        for payment in payments:
            current = latest.get(payment.category)
            if current is None or ensure_aware(payment.paid_at) > ensure_aware(current.paid_at):
                latest[payment.category] = payment

        return {
            category: round_cents(
                payment.gross_amount_reference_currency
                if payment.gross_amount_reference_currency is not None
                else payment.gross_amount
            )
            for category, payment in latest.items()
        }

    @staticmethod
    def _result(
        inputs: FeeInputs,
        category: FeeCategory,
        amount: Decimal,
        source: ResolutionSource,
    ) -> ResolvedAmount:
        return ResolvedAmount(
            user_id=inputs.user_id,
            category=category,
            amount=round_cents(amount),
            source=source,
        )
