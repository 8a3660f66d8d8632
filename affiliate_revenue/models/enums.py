"""
Enumerations shared by models and services.
"""

from enum import StrEnum


class FeeCategory(StrEnum):
    """Fee categories a student can pay."""

    SELECTION_PROCESS = "selection_process"
    APPLICATION = "application"
    SCHOLARSHIP = "scholarship"
    I20_CONTROL = "i20_control"


# Categories that make up seller revenue (application is display-only)
REVENUE_CATEGORIES: tuple[FeeCategory, ...] = (
    FeeCategory.SELECTION_PROCESS,
    FeeCategory.SCHOLARSHIP,
    FeeCategory.I20_CONTROL,
)

# Categories whose paid status marks a referral as completed
GATING_CATEGORIES: tuple[FeeCategory, ...] = REVENUE_CATEGORIES


class SystemVariant(StrEnum):
    """Per-user fee system classification."""

    LEGACY = "legacy"
    SIMPLIFIED = "simplified"

    @classmethod
    def parse(cls, value: str | None) -> "SystemVariant":
        """Parse a stored value, defaulting to legacy."""
        try:
            return cls((value or cls.LEGACY.value).lower())
        except ValueError:
            return cls.LEGACY


class PaymentRail(StrEnum):
    """Payment channel of a recorded payment."""

    STRIPE = "stripe"  # Processor charge (card or instant transfer)
    ZELLE = "zelle"  # Bank-transfer ledger entry, already net USD
    MANUAL = "manual"  # Off-platform entry recorded by an admin


class ResolutionSource(StrEnum):
    """Which precedence tier produced a resolved amount."""

    OVERRIDE = "override"
    COUPON = "coupon"
    RECORDED_PAYMENT = "recorded_payment"
    DEFAULT = "default"


class PaymentRequestStatus(StrEnum):
    """Affiliate payout request status."""

    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    REJECTED = "rejected"


class SellerStatus(StrEnum):
    """Seller registration status transitions that trigger notifications."""

    APPROVED = "approved"
    REJECTED = "rejected"
