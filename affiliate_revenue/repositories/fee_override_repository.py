"""
Fee override repository.

Data access for per-user fee overrides.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_revenue.models.fee_override import FeeOverride
from affiliate_revenue.repositories.base import BaseRepository


class FeeOverrideRepository(BaseRepository[FeeOverride]):
    """Repository for FeeOverride entity."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(FeeOverride, session)

    async def get_for_user(self, user_id: str) -> dict[str, Any] | None:
        """
        Get override row for a user.

        Returns:
            Row with `<category>_fee` columns, or None if the user has none
        """
        rows = await self.call_function(
            "get_user_fee_overrides", target_user_id=user_id
        )
        return rows[0] if rows else None

    async def get_for_users(self, user_ids: list[str]) -> list[dict[str, Any]]:
        """
        Get override rows for many users in one call.

        Returns:
            Rows keyed by `user_id`; users without overrides are absent
        """
        return await self.call_function(
            "get_user_fee_overrides_batch", p_user_ids=user_ids
        )
