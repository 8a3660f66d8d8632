"""
Fee stripping policy.

Decides whether a recorded processor charge is taken at gross value or
with processor fees stripped, based on when it was paid.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from affiliate_revenue.config.constants import DEFAULT_FEE_STRIPPING_CUTOVER
from affiliate_revenue.utils.datetime_utils import ensure_aware


class StrippingStrategy(StrEnum):
    """How the cutover is applied."""

    DATE_GATED = "date_gated"
    ALWAYS = "always"
    NEVER = "never"


@dataclass(frozen=True)
class FeeStrippingPolicy:
    """
    Cutover policy for processor fee stripping.

    Under DATE_GATED, payments before `cutover` are gross and payments
    at or after it are net.
    """

    cutover: datetime = DEFAULT_FEE_STRIPPING_CUTOVER
    strategy: StrippingStrategy = StrippingStrategy.DATE_GATED

    def __post_init__(self) -> None:
        object.__setattr__(self, "cutover", ensure_aware(self.cutover))
        object.__setattr__(self, "strategy", StrippingStrategy(self.strategy))

    def should_strip(self, paid_at: datetime) -> bool:
        """Whether fees are stripped from a charge paid at `paid_at`."""
        if self.strategy == StrippingStrategy.ALWAYS:
            return True
        if self.strategy == StrippingStrategy.NEVER:
            return False
        return ensure_aware(paid_at) >= self.cutover

    @classmethod
    def from_settings(cls, settings) -> "FeeStrippingPolicy":
        """Build the policy from application settings."""
        return cls(
            cutover=settings.fee_stripping_cutover,
            strategy=StrippingStrategy(settings.fee_stripping_strategy),
        )
