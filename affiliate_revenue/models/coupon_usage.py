"""
Promotional coupon usage model.

Created at checkout when a student redeems a coupon. fee_type uses the
coupon table's own tokens (e.g. scholarship_fee), see
services.fees.category_mapping.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from affiliate_revenue.models.base import Base
from affiliate_revenue.models.types import IdType, MoneyType


class PromotionalCouponUsage(Base):
    """Coupon redemption record (historical, never deleted)."""

    __tablename__ = "promotional_coupon_usage"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[str] = mapped_column(IdType, nullable=False, index=True)
    fee_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    coupon_code: Mapped[str] = mapped_column(String(50), nullable=False)

    original_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    final_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    # "metadata" is reserved on declarative classes
    usage_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSON, nullable=True
    )

    used_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<PromotionalCouponUsage(id={self.id}, user_id={self.user_id!r}, "
            f"fee_type={self.fee_type!r}, final_amount={self.final_amount})>"
        )
