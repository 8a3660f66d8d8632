"""
Fee resolution data models.

Value objects passed between batch loaders, the resolver and the
revenue aggregator. Amounts are Decimal in reference currency unless
a field name says otherwise.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from affiliate_revenue.models.coupon_usage import PromotionalCouponUsage
from affiliate_revenue.models.enums import (
    FeeCategory,
    PaymentRail,
    ResolutionSource,
    SystemVariant,
)
from affiliate_revenue.models.fee_payment import IndividualFeePayment
from affiliate_revenue.services.fees.category_mapping import from_backend_token
from affiliate_revenue.utils.datetime_utils import ensure_aware
from fee_calculator import to_decimal


@dataclass(frozen=True)
class FeeOverrideSet:
    """Per-user fee overrides. Missing categories are None."""

    user_id: str
    amounts: dict[FeeCategory, Decimal] = field(default_factory=dict)

    def get(self, category: FeeCategory) -> Decimal | None:
        """Get override amount for a category, if set."""
        return self.amounts.get(category)

    @property
    def is_empty(self) -> bool:
        return not self.amounts

    @classmethod
    def from_row(cls, user_id: str, row: dict[str, Any]) -> "FeeOverrideSet":
        """
        Build from a `user_fee_overrides` row or RPC record.

        Column names carry a `_fee` suffix; NULL columns are not overrides.
        """
        amounts: dict[FeeCategory, Decimal] = {}
        for category in FeeCategory:
            value = row.get(f"{category.value}_fee")
            if value is not None:
                amounts[category] = to_decimal(value)
        return cls(user_id=user_id, amounts=amounts)


@dataclass(frozen=True)
class CouponRedemption:
    """Promotional coupon usage as stored by the backend."""

    fee_type: str
    final_amount: Decimal
    redeemed_at: datetime
    coupon_code: str | None = None
    original_amount: Decimal | None = None
    discount_amount: Decimal | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_validation(self) -> bool:
        """Redemptions created while validating a code never expire."""
        return self.metadata.get("is_validation") is True

    @classmethod
    def from_record(cls, usage: PromotionalCouponUsage) -> "CouponRedemption":
        """Build from a promotional_coupon_usage row."""
        return cls(
            fee_type=usage.fee_type,
            final_amount=to_decimal(usage.final_amount),
            redeemed_at=ensure_aware(usage.used_at),
            coupon_code=usage.coupon_code,
            original_amount=usage.original_amount,
            discount_amount=usage.discount_amount,
            metadata=dict(usage.usage_metadata or {}),
        )


@dataclass(frozen=True)
class RecordedPayment:
    """Most recent recorded payment for a user/category."""

    user_id: str
    category: FeeCategory
    rail: str
    gross_amount: Decimal
    paid_at: datetime
    gross_amount_reference_currency: Decimal | None = None
    processor_transaction_id: str | None = None

    @property
    def payment_rail(self) -> PaymentRail | None:
        """Known rail, or None for values this engine does not handle."""
        try:
            return PaymentRail(self.rail.lower())
        except ValueError:
            return None

    @classmethod
    def from_record(cls, payment: IndividualFeePayment) -> "RecordedPayment | None":
        """
        Build from an individual_fee_payments row.

        Returns:
            RecordedPayment, or None for fee types outside the four categories
        """
        category = from_backend_token(payment.fee_type)
        if category is None:
            return None
        return cls(
            user_id=payment.user_id,
            category=category,
            rail=payment.payment_method or "",
            gross_amount=to_decimal(payment.amount),
            paid_at=ensure_aware(payment.payment_date),
            gross_amount_reference_currency=payment.gross_amount_usd,
            processor_transaction_id=payment.payment_intent_id,
        )


@dataclass
class FeeInputs:
    """Everything the resolver needs to know about one user."""

    user_id: str
    variant: SystemVariant = SystemVariant.LEGACY
    dependents: int = 0
    override: FeeOverrideSet | None = None
    coupons: dict[FeeCategory, CouponRedemption] = field(default_factory=dict)
    payments: dict[FeeCategory, RecordedPayment] = field(default_factory=dict)


@dataclass(frozen=True)
class ResolvedAmount:
    """Amount a user paid (or owes) for a category, with its source."""

    user_id: str
    category: FeeCategory
    amount: Decimal
    source: ResolutionSource
