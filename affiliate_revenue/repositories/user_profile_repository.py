"""
User profile repository.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from affiliate_revenue.models.user_profile import UserProfile
from affiliate_revenue.repositories.base import BaseRepository


class UserProfileRepository(BaseRepository[UserProfile]):
    """Repository for UserProfile entity."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(UserProfile, session)

    async def get_by_user_id(self, user_id: str) -> UserProfile | None:
        """Get profile by backend user id."""
        return await self.get_by(user_id=user_id)

    async def get_by_user_ids(self, user_ids: list[str]) -> list[UserProfile]:
        """Get profiles for many users in one query."""
        if not user_ids:
            return []

        stmt = (
            select(UserProfile)
            .where(UserProfile.user_id.in_(user_ids))
            .options(selectinload(UserProfile.scholarship_applications))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_referral_codes(
        self, referral_codes: list[str]
    ) -> list[UserProfile]:
        """
        Get every profile registered with one of the referral codes.

        Returns:
            Profiles with scholarship applications loaded, oldest first
        """
        if not referral_codes:
            return []

        stmt = (
            select(UserProfile)
            .where(UserProfile.seller_referral_code.in_(referral_codes))
            .options(selectinload(UserProfile.scholarship_applications))
            .order_by(UserProfile.created_at.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
