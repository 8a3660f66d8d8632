"""
Revenue aggregator.

Pure fold over referred students and their resolved fee amounts into
dashboard figures: totals per referral code, daily and monthly buckets,
conversion, growth and payout balance. No I/O happens here; amounts
come from the fee value resolver.
"""

from collections.abc import Callable, Iterable
from datetime import date, datetime, timedelta
from decimal import Decimal

from loguru import logger

from affiliate_revenue.config.constants import (
    CONVERSION_TARGET_CAP,
    CONVERSION_TARGET_DEFAULT,
    DAILY_WINDOW_DAYS,
    MONTHLY_WINDOW_MONTHS,
    RECENT_WINDOW_DAYS,
    UNKNOWN_REFERRAL_CODE,
)
from affiliate_revenue.models.enums import (
    GATING_CATEGORIES,
    REVENUE_CATEGORIES,
    FeeCategory,
    PaymentRail,
    PaymentRequestStatus,
)
from affiliate_revenue.services.anomalies import AnomalyKind, AnomalyLog
from affiliate_revenue.services.revenue.models import (
    PaymentRequestSummary,
    ReferralProfile,
    RevenueGroupBy,
    RevenueSummary,
    StudentRevenue,
)
from affiliate_revenue.utils.datetime_utils import ensure_aware, utc_now
from fee_calculator import round_cents


ZERO = Decimal("0.00")

# Aggregation input: a student and the resolved amount per category
RevenueEntry = tuple[ReferralProfile, dict[FeeCategory, Decimal]]


def conversion_rate(completed: int, total: int) -> float:
    """
    Completed referrals as a percentage of all referrals.

    Example:
        >>> conversion_rate(4, 10)
        40.0
    """
    if total <= 0:
        return 0.0
    return completed / total * 100


def growth_rate(current: Decimal | float, previous: Decimal | float) -> float:
    """
    Period-over-period growth in percent.

    A zero previous period counts as 100% growth when anything happened
    in the current period, otherwise 0%.

    Example:
        >>> growth_rate(50, 0)
        100.0
        >>> growth_rate(0, 0)
        0.0
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return float((Decimal(str(current)) - Decimal(str(previous))) / Decimal(str(previous)) * 100)


def conversion_target(rate: float) -> float:
    """Next conversion goal: 10% above the current rate, capped."""
    if rate <= 0:
        return float(CONVERSION_TARGET_DEFAULT)
    return min(float(CONVERSION_TARGET_CAP), rate * 1.1)


def month_key(value: date | datetime) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def trailing_days(today: date, days: int) -> list[str]:
    """ISO day keys for the trailing window, oldest first, ending today."""
    return [(today - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]


def trailing_months(today: date, months: int) -> list[str]:
    """Month keys for the trailing window, oldest first, ending this month."""
    keys = []
    year, month = today.year, today.month
    for _ in range(months):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


class RevenueAggregator:
    """Folds resolved amounts into a RevenueSummary."""

    def __init__(
        self,
        anomalies: AnomalyLog | None = None,
        scholarship_paid_source: str = "flag",
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize aggregator.

        Args:
            anomalies: Anomaly log for paid-flag disagreements
            scholarship_paid_source: "flag" or "applications"
            clock: Returns the current aware datetime
        """
        self.anomalies = anomalies or AnomalyLog()
        self.scholarship_paid_source = scholarship_paid_source
        self.clock = clock
        self.logger = logger.bind(service="RevenueAggregator")

    def is_scholarship_paid(
        self, profile: ReferralProfile, record_mismatch: bool = True
    ) -> bool:
        """
        Whether the scholarship fee counts as paid.

        The profile flag wins when present; applications are the
        fallback. Disagreements are recorded, never raised.
        """
        from_applications = any(profile.scholarship_applications_paid)
        flag = profile.is_scholarship_fee_paid

        if (
            record_mismatch
            and flag is not None
            and profile.scholarship_applications_paid
            and flag != from_applications
        ):
            self.anomalies.record(
                AnomalyKind.SCHOLARSHIP_FLAG_MISMATCH,
                f"Scholarship flag={flag} but applications={from_applications}",
                user_id=profile.user_id,
            )

        if self.scholarship_paid_source == "applications":
            return from_applications
        if flag is not None:
            return flag
        return from_applications

    def paid_categories(
        self, profile: ReferralProfile, record_mismatch: bool = True
    ) -> list[FeeCategory]:
        """Revenue categories whose own paid flag is set."""
        paid = {
            FeeCategory.SELECTION_PROCESS: profile.has_paid_selection_process_fee,
            FeeCategory.SCHOLARSHIP: self.is_scholarship_paid(profile, record_mismatch),
            FeeCategory.I20_CONTROL: profile.has_paid_i20_control_fee,
        }
        return [category for category in REVENUE_CATEGORIES if paid[category]]

    def aggregate(
        self,
        entries: Iterable[RevenueEntry],
        group_by: RevenueGroupBy | str = RevenueGroupBy.REFERRAL_CODE,
        payment_requests: Iterable[PaymentRequestSummary] | None = None,
    ) -> RevenueSummary:
        """
        Build dashboard figures.

        Args:
            entries: (profile, resolved amount per category) pairs
            group_by: Primary grouping for `groups`
            payment_requests: Affiliate payout requests, enables balance

        Returns:
            RevenueSummary

        Raises:
            ValueError: If group_by is not a known grouping
        """
        group_by = RevenueGroupBy(group_by)

        now = self.clock()
        today = now.date()
        recent_cutoff = now - timedelta(days=RECENT_WINDOW_DAYS)

        daily = {key: ZERO for key in trailing_days(today, DAILY_WINDOW_DAYS)}
        monthly = {key: ZERO for key in trailing_months(today, MONTHLY_WINDOW_MONTHS)}
        by_code: dict[str, Decimal] = {}
        students: list[StudentRevenue] = []

        total = ZERO
        manual = ZERO
        last_7_days = ZERO
        completed = 0

        for profile, amounts in entries:
            paid = self.paid_categories(profile)
            is_completed = any(category in GATING_CATEGORIES for category in paid)
            if is_completed:
                completed += 1

            counted = {category: round_cents(amounts.get(category, ZERO)) for category in paid}
            student_total = sum(counted.values(), ZERO)

            code = profile.seller_referral_code or UNKNOWN_REFERRAL_CODE
            created_at = ensure_aware(profile.created_at)

            total += student_total
            by_code[code] = by_code.get(code, ZERO) + student_total
            manual += sum(
                (
                    amount
                    for category, amount in counted.items()
                    if (profile.payment_methods.get(category) or "").lower() == PaymentRail.MANUAL
                ),
                ZERO,
            )

            day = created_at.date().isoformat()
            if day in daily:
                daily[day] += student_total
            month = month_key(created_at)
            if month in monthly:
                monthly[month] += student_total
            if created_at >= recent_cutoff:
                last_7_days += student_total

            students.append(
                StudentRevenue(
                    user_id=profile.user_id,
                    referral_code=code,
                    created_at=created_at,
                    amounts=counted,
                    total=student_total,
                    completed=is_completed,
                    full_name=profile.full_name,
                    email=profile.email,
                )
            )

        total_referrals = len(students)
        rate = conversion_rate(completed, total_referrals)

        daily_values = list(daily.values())
        current_week = sum(daily_values[-7:], ZERO)
        previous_week = sum(daily_values[-14:-7], ZERO)

        month_values = list(monthly.values())
        best_month = None
        if any(month_values):
            best_month = max(monthly, key=lambda key: monthly[key])

        available_balance = None
        if payment_requests is not None:
            available_balance = self.available_balance(total, manual, payment_requests)

        groups = {
            RevenueGroupBy.REFERRAL_CODE: by_code,
            RevenueGroupBy.DAY: daily,
            RevenueGroupBy.MONTH: monthly,
        }[group_by]

        self.logger.debug(
            f"Aggregated {total_referrals} referral(s): total={total}, "
            f"completed={completed}, group_by={group_by}"
        )

        return RevenueSummary(
            group_by=group_by,
            groups=dict(groups),
            total_revenue=total,
            by_referral_code=by_code,
            daily=daily,
            monthly=monthly,
            total_referrals=total_referrals,
            completed_referrals=completed,
            pending_referrals=total_referrals - completed,
            conversion_rate=rate,
            conversion_target=conversion_target(rate),
            average_commission=(
                round_cents(total / total_referrals) if total_referrals else ZERO
            ),
            last_7_days_revenue=last_7_days,
            revenue_growth=growth_rate(current_week, previous_week),
            monthly_growth=growth_rate(month_values[-1], month_values[-2]),
            monthly_average=round_cents(sum(month_values, ZERO) / len(month_values)),
            best_month=best_month,
            manual_revenue=manual,
            available_balance=available_balance,
            students=students,
        )

    @staticmethod
    def available_balance(
        total: Decimal,
        manual: Decimal,
        payment_requests: Iterable[PaymentRequestSummary],
    ) -> Decimal:
        """
        Revenue still available for payout.

        Manual-rail revenue was settled off-platform; paid, approved and
        pending requests are already committed.
        """
        committed = sum(
            (
                request.amount_usd
                for request in payment_requests
                if request.status in (
                    PaymentRequestStatus.PAID,
                    PaymentRequestStatus.APPROVED,
                    PaymentRequestStatus.PENDING,
                )
            ),
            ZERO,
        )
        return max(ZERO, round_cents(total - manual - committed))
