"""
Individual fee payment model.

Append-only ledger of what was actually charged. Retries and
corrections add rows; resolution uses the most recent by payment_date.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from affiliate_revenue.models.base import Base
from affiliate_revenue.models.types import IdType, MoneyType


class IndividualFeePayment(Base):
    """Recorded fee payment."""

    __tablename__ = "individual_fee_payments"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="check_fee_payment_amount_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[str] = mapped_column(IdType, nullable=False, index=True)
    fee_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    # stripe, zelle, manual
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)

    # Gross amount in the charge's original currency
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    # Gross amount already converted to USD, when known at capture time
    gross_amount_usd: Mapped[Decimal | None] = mapped_column(
        MoneyType, nullable=True
    )

    payment_intent_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True, index=True
    )

    payment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<IndividualFeePayment(id={self.id}, user_id={self.user_id!r}, "
            f"fee_type={self.fee_type!r}, method={self.payment_method!r}, "
            f"amount={self.amount})>"
        )
