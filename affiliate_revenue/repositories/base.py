"""
Base repository.

Generic read operations and stored procedure calls for all repositories.
The engine never writes to the backend store.
"""

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_revenue.models.base import Base

# Generic type for model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with generic read operations.

    Type Parameters:
        ModelType: SQLAlchemy model class

    Example:
        class SellerRepository(BaseRepository[Seller]):
            def __init__(self, session: AsyncSession):
                super().__init__(Seller, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get_by(
        self, **filters: Any
    ) -> ModelType | None:
        """
        Get single entity by filters.

        Args:
            **filters: Column filters

        Returns:
            First matching entity or None
        """
        stmt = select(self.model).filter_by(**filters).limit(1)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def call_function(
        self, function_name: str, **params: Any
    ) -> Sequence[dict[str, Any]]:
        """
        Call a set-returning stored procedure.

        Args:
            function_name: Procedure name (trusted, never user input)
            **params: Named procedure arguments

        Returns:
            Rows as plain dicts
        """
        placeholders = ", ".join(f"{name} => :{name}" for name in params)
        stmt = text(f"SELECT * FROM {function_name}({placeholders})")
        result = await self.session.execute(stmt, params)
        return [dict(row) for row in result.mappings().all()]
