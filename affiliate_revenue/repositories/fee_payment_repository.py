"""
Individual fee payment repository.

Read access to the append-only payment ledger.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_revenue.models.fee_payment import IndividualFeePayment
from affiliate_revenue.repositories.base import BaseRepository


class FeePaymentRepository(BaseRepository[IndividualFeePayment]):
    """Repository for IndividualFeePayment entity."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(IndividualFeePayment, session)

    async def get_by_user(
        self,
        user_id: str,
        fee_types: list[str] | None = None,
    ) -> list[IndividualFeePayment]:
        """
        Get payments for a user, newest first.

        Args:
            user_id: User ID
            fee_types: Restrict to these fee_type values

        Returns:
            List of payments
        """
        stmt = select(IndividualFeePayment).where(
            IndividualFeePayment.user_id == user_id
        )
        if fee_types:
            stmt = stmt.where(IndividualFeePayment.fee_type.in_(fee_types))
        stmt = stmt.order_by(IndividualFeePayment.payment_date.desc())

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_users(
        self, user_ids: list[str]
    ) -> list[IndividualFeePayment]:
        """Get payments for many users in one query, newest first."""
        if not user_ids:
            return []

        stmt = (
            select(IndividualFeePayment)
            .where(IndividualFeePayment.user_id.in_(user_ids))
            .order_by(IndividualFeePayment.payment_date.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_payment_dates(self, user_ids: list[str]) -> list[dict[str, Any]]:
        """
        Get payment dates for many users in one call.

        Returns:
            Rows with user_id, fee_type and payment_date
        """
        return await self.call_function(
            "get_payment_dates_batch", p_user_ids=user_ids
        )
