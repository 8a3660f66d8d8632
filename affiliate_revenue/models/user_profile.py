"""
User profile and scholarship application models.

Read-only here: the engine only reads paid flags, system variant,
dependents and the referral code a student registered with.
"""

from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from affiliate_revenue.models.base import Base
from affiliate_revenue.models.types import IdType


class UserProfile(Base):
    """Student profile."""

    __tablename__ = "user_profiles"

    id: Mapped[str] = mapped_column(IdType, primary_key=True)
    user_id: Mapped[str] = mapped_column(IdType, nullable=False, unique=True, index=True)

    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    seller_referral_code: Mapped[str | None] = mapped_column(
        String(50), nullable=True, index=True
    )
    system_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    dependents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Paid flags
    has_paid_selection_process_fee: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    is_application_fee_paid: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    # Pre-joined flag; NULL when never computed for this profile
    is_scholarship_fee_paid: Mapped[bool | None] = mapped_column(
        Boolean, nullable=True
    )
    has_paid_i20_control_fee: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    # Payment methods per category
    selection_process_fee_payment_method: Mapped[str | None] = mapped_column(
        String(20), nullable=True
    )
    i20_control_fee_payment_method: Mapped[str | None] = mapped_column(
        String(20), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        index=True,
    )

    scholarship_applications: Mapped[list["ScholarshipApplication"]] = relationship(
        "ScholarshipApplication",
        back_populates="student",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<UserProfile(id={self.id!r}, user_id={self.user_id!r})>"


class ScholarshipApplication(Base):
    """Scholarship application of a student (one student may have several)."""

    __tablename__ = "scholarship_applications"

    id: Mapped[str] = mapped_column(IdType, primary_key=True)
    student_id: Mapped[str] = mapped_column(
        ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )

    is_scholarship_fee_paid: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    scholarship_fee_payment_method: Mapped[str | None] = mapped_column(
        String(20), nullable=True
    )

    student: Mapped[UserProfile] = relationship(
        "UserProfile", back_populates="scholarship_applications"
    )
