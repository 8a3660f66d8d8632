"""
Fee override model.

Per-user fee amounts set by administrative action. A non-null column
unconditionally replaces every other source for that category.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, mapped_column

from affiliate_revenue.models.base import Base
from affiliate_revenue.models.types import IdType, MoneyType


class FeeOverride(Base):
    """Fee override row - one per user."""

    __tablename__ = "user_fee_overrides"

    user_id: Mapped[str] = mapped_column(IdType, primary_key=True)

    selection_process_fee: Mapped[Decimal | None] = mapped_column(
        MoneyType, nullable=True
    )
    application_fee: Mapped[Decimal | None] = mapped_column(
        MoneyType, nullable=True
    )
    scholarship_fee: Mapped[Decimal | None] = mapped_column(
        MoneyType, nullable=True
    )
    i20_control_fee: Mapped[Decimal | None] = mapped_column(
        MoneyType, nullable=True
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    def __repr__(self) -> str:
        return f"<FeeOverride(user_id={self.user_id!r})>"
