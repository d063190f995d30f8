"""
Base service class.

Provides common functionality for all service classes including session management,
logging, and helper decorators.
"""

import functools
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.utils.exceptions import ProcedureError


# Type variable for generic decorator return types
T = TypeVar("T")


class BaseService:
    """
    Base service class.

    Provides common functionality for all service classes:
    - Session management
    - Logging with bound service context
    - Transaction helpers
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
        """
        self.session = session
        self.logger = logger.bind(service=self.__class__.__name__)

    async def commit(self) -> None:
        """Commit current transaction."""
        await self.session.commit()

    async def rollback(self) -> None:
        """Rollback current transaction."""
        await self.session.rollback()


def transaction(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """
    Decorator to wrap method in transaction with automatic commit/rollback.

    Commits on success, rolls back on exception. Business errors
    (ProcedureError) are logged without a traceback.

    Usage:
        @transaction
        async def create_stake(self, user_id, amount):
            ...
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> T:
        try:
            result = await func(self, *args, **kwargs)
            await self.commit()
            return result
        except ProcedureError as e:
            await self.rollback()
            self.logger.info(
                f"Rejected {func.__name__}: {e.code.value}",
                function=func.__name__,
                reason=e.message,
            )
            raise
        except Exception as e:
            await self.rollback()
            self.logger.opt(exception=True).error(
                f"Transaction failed in {func.__name__}",
                function=func.__name__,
                error=str(e),
            )
            raise

    return wrapper


def log_operation(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """
    Decorator to log method entry/exit with timing.

    Usage:
        @log_operation
        async def distribute(self):
            ...
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> T:
        start_time = time.time()
        self.logger.info(f"Starting {func.__name__}", function=func.__name__)

        try:
            result = await func(self, *args, **kwargs)
        except Exception as e:
            self.logger.error(
                f"Failed {func.__name__}",
                function=func.__name__,
                duration_seconds=round(time.time() - start_time, 3),
                error=str(e),
            )
            raise

        self.logger.info(
            f"Completed {func.__name__}",
            function=func.__name__,
            duration_seconds=round(time.time() - start_time, 3),
        )
        return result

    return wrapper
