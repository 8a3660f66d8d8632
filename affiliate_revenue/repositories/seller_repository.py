"""
Seller and affiliate payment request repositories.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_revenue.models.seller import AffiliatePaymentRequest, Seller
from affiliate_revenue.repositories.base import BaseRepository


class SellerRepository(BaseRepository[Seller]):
    """Repository for Seller entity."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(Seller, session)

    async def get_by_affiliate_admin(
        self, affiliate_admin_id: str, active_only: bool = False
    ) -> list[Seller]:
        """
        Get sellers managed by an affiliate admin.

        Args:
            affiliate_admin_id: Affiliate admin user id
            active_only: Skip deactivated sellers

        Returns:
            List of sellers
        """
        stmt = select(Seller).where(Seller.affiliate_admin_id == affiliate_admin_id)
        if active_only:
            stmt = stmt.where(Seller.is_active.is_(True))

        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class PaymentRequestRepository(BaseRepository[AffiliatePaymentRequest]):
    """Repository for AffiliatePaymentRequest entity."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(AffiliatePaymentRequest, session)

    async def get_by_referrer(
        self, referrer_user_id: str
    ) -> list[AffiliatePaymentRequest]:
        """Get payout requests raised by an affiliate, newest first."""
        stmt = (
            select(AffiliatePaymentRequest)
            .where(AffiliatePaymentRequest.referrer_user_id == referrer_user_id)
            .order_by(AffiliatePaymentRequest.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
