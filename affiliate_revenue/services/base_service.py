"""
Base service class.

Provides common functionality for service classes: session access,
logging with bound service context and a timing decorator.
"""

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession


# Type variable for generic decorator return types
T = TypeVar("T")


class BaseService:
    """
    Base service class.

    Services only read from the backend store, so no transaction
    helpers are exposed.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
        """
        self.session = session
        self.logger = logger.bind(service=self.__class__.__name__)


def log_operation(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to log method entry/exit with timing.

    Usage:
        @log_operation
        async def aggregate_revenue(self, cohort):
            ...

    Args:
        func: Async method to wrap

    Returns:
        Wrapped async method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        start_time = time.monotonic()
        self.logger.debug(f"Starting {func.__name__}")

        try:
            result = await func(self, *args, **kwargs)
        except Exception as e:
            duration = time.monotonic() - start_time
            self.logger.bind(
                function=func.__name__,
                duration_seconds=round(duration, 3),
            ).exception(f"Failed {func.__name__}: {e}")
            raise

        duration = time.monotonic() - start_time
        self.logger.bind(
            function=func.__name__,
            duration_seconds=round(duration, 3),
        ).info(f"Completed {func.__name__} in {duration:.3f}s")
        return result

    return wrapper
