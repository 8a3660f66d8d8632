"""
Seller and affiliate payment request models.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from affiliate_revenue.models.base import Base
from affiliate_revenue.models.enums import PaymentRequestStatus
from affiliate_revenue.models.types import IdType, MoneyType, RateType


class Seller(Base):
    """Seller registered under an affiliate admin."""

    __tablename__ = "sellers"

    id: Mapped[str] = mapped_column(IdType, primary_key=True)
    user_id: Mapped[str] = mapped_column(IdType, nullable=False, unique=True, index=True)
    affiliate_admin_id: Mapped[str | None] = mapped_column(
        IdType, nullable=True, index=True
    )

    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    referral_code: Mapped[str] = mapped_column(
        String(50), nullable=False, unique=True, index=True
    )
    commission_rate: Mapped[Decimal] = mapped_column(
        RateType, nullable=False, default=Decimal("0.1")
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Seller(id={self.id!r}, referral_code={self.referral_code!r})>"


class AffiliatePaymentRequest(Base):
    """Payout request raised by an affiliate against earned revenue."""

    __tablename__ = "affiliate_payment_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    referrer_user_id: Mapped[str] = mapped_column(IdType, nullable=False, index=True)

    amount_usd: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentRequestStatus.PENDING,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
