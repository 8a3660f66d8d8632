"""Revenue aggregation."""

from affiliate_revenue.services.revenue.aggregator import (
    RevenueAggregator,
    conversion_rate,
    conversion_target,
    growth_rate,
)
from affiliate_revenue.services.revenue.models import (
    PaymentRequestSummary,
    ReferralProfile,
    RevenueGroupBy,
    RevenueSummary,
    StudentRevenue,
)
from affiliate_revenue.services.revenue.service import RevenueService

__all__ = [
    "RevenueService",
    "RevenueAggregator",
    "RevenueGroupBy",
    "RevenueSummary",
    "ReferralProfile",
    "PaymentRequestSummary",
    "StudentRevenue",
    "conversion_rate",
    "conversion_target",
    "growth_rate",
]
