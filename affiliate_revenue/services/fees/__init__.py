"""
Fee resolution services.

Resolves how much a user actually paid per fee category.
"""

from affiliate_revenue.services.fees.category_mapping import (
    from_backend_token,
    parse_category,
    to_backend_token,
)
from affiliate_revenue.services.fees.fee_policy import (
    FeeStrippingPolicy,
    StrippingStrategy,
)
from affiliate_revenue.services.fees.models import (
    CouponRedemption,
    FeeInputs,
    FeeOverrideSet,
    RecordedPayment,
    ResolvedAmount,
)
from affiliate_revenue.services.fees.resolver import FeeValueResolver

__all__ = [
    "FeeValueResolver",
    "FeeStrippingPolicy",
    "StrippingStrategy",
    "FeeInputs",
    "FeeOverrideSet",
    "CouponRedemption",
    "RecordedPayment",
    "ResolvedAmount",
    "to_backend_token",
    "from_backend_token",
    "parse_category",
]
