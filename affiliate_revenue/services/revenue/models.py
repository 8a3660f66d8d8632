"""
Revenue aggregation data models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from affiliate_revenue.models.enums import FeeCategory, PaymentRequestStatus, SystemVariant
from affiliate_revenue.models.seller import AffiliatePaymentRequest
from affiliate_revenue.models.user_profile import UserProfile
from affiliate_revenue.utils.datetime_utils import ensure_aware, utc_now
from fee_calculator import to_decimal


class RevenueGroupBy(StrEnum):
    """Primary grouping of a revenue summary."""

    REFERRAL_CODE = "referral_code"
    DAY = "day"
    MONTH = "month"


@dataclass
class ReferralProfile:
    """Referred student as seen by revenue aggregation."""

    user_id: str
    created_at: datetime
    profile_id: str | None = None
    seller_referral_code: str | None = None
    variant: SystemVariant = SystemVariant.LEGACY
    dependents: int = 0
    full_name: str | None = None
    email: str | None = None
    has_paid_selection_process_fee: bool = False
    is_scholarship_fee_paid: bool | None = None
    has_paid_i20_control_fee: bool = False
    has_paid_application_fee: bool = False
    # Paid flag of each scholarship application
    scholarship_applications_paid: list[bool] = field(default_factory=list)
    payment_methods: dict[FeeCategory, str | None] = field(default_factory=dict)

    @classmethod
    def from_record(cls, profile: UserProfile) -> "ReferralProfile":
        """Build from a user_profiles row with applications loaded."""
        applications = list(profile.scholarship_applications or [])
        paid_applications = [a for a in applications if a.is_scholarship_fee_paid]

        scholarship_method = None
        if paid_applications:
            methods = [a.scholarship_fee_payment_method for a in paid_applications]
            scholarship_method = "manual" if "manual" in methods else methods[0]

        return cls(
            user_id=profile.user_id,
            profile_id=profile.id,
            created_at=ensure_aware(profile.created_at) or utc_now(),
            seller_referral_code=profile.seller_referral_code,
            variant=SystemVariant.parse(profile.system_type),
            dependents=profile.dependents or 0,
            full_name=profile.full_name,
            email=profile.email,
            has_paid_selection_process_fee=bool(profile.has_paid_selection_process_fee),
            is_scholarship_fee_paid=profile.is_scholarship_fee_paid,
            has_paid_i20_control_fee=bool(profile.has_paid_i20_control_fee),
            has_paid_application_fee=bool(profile.is_application_fee_paid),
            scholarship_applications_paid=[bool(a.is_scholarship_fee_paid) for a in applications],
            payment_methods={
                FeeCategory.SELECTION_PROCESS: profile.selection_process_fee_payment_method,
                FeeCategory.SCHOLARSHIP: scholarship_method,
                FeeCategory.I20_CONTROL: profile.i20_control_fee_payment_method,
            },
        )


@dataclass(frozen=True)
class PaymentRequestSummary:
    """Payout request amount and status."""

    amount_usd: Decimal
    status: PaymentRequestStatus

    @classmethod
    def from_record(
        cls, request: AffiliatePaymentRequest
    ) -> "PaymentRequestSummary | None":
        """Build from a payment request row; None for an unknown status."""
        try:
            status = PaymentRequestStatus((request.status or "").lower())
        except ValueError:
            return None
        return cls(amount_usd=to_decimal(request.amount_usd), status=status)


@dataclass
class StudentRevenue:
    """Per-student revenue breakdown row."""

    user_id: str
    referral_code: str
    created_at: datetime
    amounts: dict[FeeCategory, Decimal]
    total: Decimal
    completed: bool
    full_name: str | None = None
    email: str | None = None


@dataclass
class RevenueSummary:
    """
    Dashboard revenue figures for a cohort.

    Money is Decimal in reference currency; rates and growth are
    percentages as float.
    """

    group_by: RevenueGroupBy
    groups: dict[str, Decimal]
    total_revenue: Decimal
    by_referral_code: dict[str, Decimal]
    daily: dict[str, Decimal]
    monthly: dict[str, Decimal]
    total_referrals: int
    completed_referrals: int
    pending_referrals: int
    conversion_rate: float
    conversion_target: float
    average_commission: Decimal
    last_7_days_revenue: Decimal
    revenue_growth: float
    monthly_growth: float
    monthly_average: Decimal
    best_month: str | None
    manual_revenue: Decimal
    available_balance: Decimal | None = None
    students: list[StudentRevenue] = field(default_factory=list)
