"""
Promotional coupon usage repository.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_revenue.models.coupon_usage import PromotionalCouponUsage
from affiliate_revenue.repositories.base import BaseRepository


class CouponUsageRepository(BaseRepository[PromotionalCouponUsage]):
    """Repository for PromotionalCouponUsage entity."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(PromotionalCouponUsage, session)

    async def get_latest_by_user(
        self, user_id: str
    ) -> dict[str, PromotionalCouponUsage]:
        """
        Get most recent redemption per backend fee_type for a user.

        Returns:
            Dict fee_type -> usage
        """
        latest = await self.get_latest_by_users([user_id])
        return latest.get(user_id, {})

    async def get_latest_by_users(
        self, user_ids: list[str]
    ) -> dict[str, dict[str, PromotionalCouponUsage]]:
        """
        Get most recent redemption per fee_type for many users.

        Returns:
            Dict user_id -> {fee_type: usage}
        """
        if not user_ids:
            return {}

        stmt = (
            select(PromotionalCouponUsage)
            .where(PromotionalCouponUsage.user_id.in_(user_ids))
            .order_by(PromotionalCouponUsage.used_at.desc())
        )
        result = await self.session.execute(stmt)

        latest: dict[str, dict[str, PromotionalCouponUsage]] = {}
        for usage in result.scalars().all():
            # Ordered newest first: keep the first seen per fee_type
            latest.setdefault(usage.user_id, {}).setdefault(usage.fee_type, usage)
        return latest
