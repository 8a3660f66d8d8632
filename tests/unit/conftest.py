"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- Mock payment intent lookup client
- Fee stripping policy and resolver
- Factories for payments, coupons and referral profiles
"""

from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from affiliate_revenue.models.enums import FeeCategory, SystemVariant
from affiliate_revenue.services.fees import (
    CouponRedemption,
    FeeStrippingPolicy,
    FeeValueResolver,
    RecordedPayment,
)
from affiliate_revenue.services.payment_intent import PaymentIntentMetadata
from affiliate_revenue.services.revenue import ReferralProfile, RevenueAggregator
from tests.conftest import CUTOVER, NOW


@pytest.fixture
def lookup_client():
    """
    Mock payment intent client.

    Returns:
        AsyncMock: fetch() returns USD card metadata by default
    """
    client = AsyncMock()
    client.fetch = AsyncMock(return_value=PaymentIntentMetadata(original_currency="usd"))
    return client


@pytest.fixture
def policy():
    """Date-gated policy with the test cutover."""
    return FeeStrippingPolicy(cutover=CUTOVER)


@pytest.fixture
def resolver(lookup_client, policy, anomalies):
    """Resolver with fixed clock and mocked lookups."""
    return FeeValueResolver(
        lookup_client=lookup_client,
        policy=policy,
        anomalies=anomalies,
        clock=lambda: NOW,
    )


@pytest.fixture
def aggregator(anomalies):
    """Aggregator with fixed clock."""
    return RevenueAggregator(anomalies=anomalies, clock=lambda: NOW)


@pytest.fixture
def make_payment():
    """Factory for recorded payments."""

    def _make(
        category: FeeCategory = FeeCategory.SCHOLARSHIP,
        rail: str = "stripe",
        amount: str = "1040.27",
        paid_at: datetime = NOW - timedelta(days=3),
        transaction_id: str | None = "pi_test",
        user_id: str = "user-1",
        gross_usd: str | None = None,
    ) -> RecordedPayment:
        return RecordedPayment(
            user_id=user_id,
            category=category,
            rail=rail,
            gross_amount=Decimal(amount),
            paid_at=paid_at,
            gross_amount_reference_currency=Decimal(gross_usd) if gross_usd else None,
            processor_transaction_id=transaction_id,
        )

    return _make


@pytest.fixture
def make_coupon():
    """Factory for coupon redemptions."""

    def _make(
        final_amount: str = "450",
        redeemed_at: datetime = NOW - timedelta(hours=2),
        metadata: dict | None = None,
        fee_type: str = "scholarship_fee",
    ) -> CouponRedemption:
        return CouponRedemption(
            fee_type=fee_type,
            final_amount=Decimal(final_amount),
            redeemed_at=redeemed_at,
            coupon_code="PROMO10",
            metadata=metadata or {},
        )

    return _make


@pytest.fixture
def make_profile():
    """Factory for referral profiles (nothing paid by default)."""

    def _make(
        user_id: str = "user-1",
        code: str | None = "SELLER1",
        created_at: datetime = NOW - timedelta(days=1),
        selection: bool = False,
        scholarship: bool | None = None,
        i20: bool = False,
        applications: list[bool] | None = None,
        methods: dict | None = None,
        variant: SystemVariant = SystemVariant.LEGACY,
        dependents: int = 0,
    ) -> ReferralProfile:
        return ReferralProfile(
            user_id=user_id,
            created_at=created_at,
            seller_referral_code=code,
            variant=variant,
            dependents=dependents,
            has_paid_selection_process_fee=selection,
            is_scholarship_fee_paid=scholarship,
            has_paid_i20_control_fee=i20,
            scholarship_applications_paid=applications or [],
            payment_methods=methods or {},
        )

    return _make
