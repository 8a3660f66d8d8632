"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from affiliate_revenue.models.base import Base
from affiliate_revenue.models.coupon_usage import PromotionalCouponUsage
from affiliate_revenue.models.enums import (
    GATING_CATEGORIES,
    REVENUE_CATEGORIES,
    FeeCategory,
    PaymentRail,
    PaymentRequestStatus,
    ResolutionSource,
    SellerStatus,
    SystemVariant,
)
from affiliate_revenue.models.fee_override import FeeOverride
from affiliate_revenue.models.fee_payment import IndividualFeePayment
from affiliate_revenue.models.seller import AffiliatePaymentRequest, Seller
from affiliate_revenue.models.user_profile import ScholarshipApplication, UserProfile


__all__ = [
    "Base",
    # Fee data
    "FeeOverride",
    "PromotionalCouponUsage",
    "IndividualFeePayment",
    # Profiles
    "UserProfile",
    "ScholarshipApplication",
    "Seller",
    "AffiliatePaymentRequest",
    # Enums
    "FeeCategory",
    "SystemVariant",
    "PaymentRail",
    "ResolutionSource",
    "PaymentRequestStatus",
    "SellerStatus",
    "REVENUE_CATEGORIES",
    "GATING_CATEGORIES",
]
