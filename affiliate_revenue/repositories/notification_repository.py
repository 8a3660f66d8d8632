"""
Admin notification repository.

Notifications live behind a stored procedure; only unread counts are read.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_revenue.models.base import Base
from affiliate_revenue.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Base]):
    """Stored procedure access for admin notifications."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(Base, session)

    async def get_unread_counts(self, admin_ids: list[str]) -> list[dict[str, Any]]:
        """
        Get unread notification counts for many recipients in one call.

        Returns:
            Rows with admin_id and unread_count
        """
        return await self.call_function(
            "get_unread_notifications_batch", p_admin_ids=admin_ids
        )
