"""
Repositories.

Backend store access. Each repository wraps one table or stored procedure
family and never commits.
"""

from affiliate_revenue.repositories.base import BaseRepository
from affiliate_revenue.repositories.coupon_usage_repository import CouponUsageRepository
from affiliate_revenue.repositories.fee_override_repository import FeeOverrideRepository
from affiliate_revenue.repositories.fee_payment_repository import FeePaymentRepository
from affiliate_revenue.repositories.notification_repository import NotificationRepository
from affiliate_revenue.repositories.seller_repository import (
    PaymentRequestRepository,
    SellerRepository,
)
from affiliate_revenue.repositories.user_profile_repository import UserProfileRepository

__all__ = [
    "BaseRepository",
    "FeeOverrideRepository",
    "CouponUsageRepository",
    "FeePaymentRepository",
    "UserProfileRepository",
    "SellerRepository",
    "PaymentRequestRepository",
    "NotificationRepository",
]
