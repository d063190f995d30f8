"""
Database decorators for job-level functions.

Job helpers receive a session as their first argument and own the
transaction: commit on success, roll back and re-raise on error.
"""

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession


T = TypeVar("T")


def _find_session(args: tuple[Any, ...], kwargs: dict[str, Any]) -> AsyncSession | None:
    session = kwargs.get("session")
    if session is None and args and isinstance(args[0], AsyncSession):
        session = args[0]
    return session


def with_auto_commit(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """
    Commit the session on success and roll back on error.

    Usage:
        @with_auto_commit
        async def expire_overdue(session: AsyncSession) -> int:
            ...

    Raises:
        TypeError: If the wrapped call has no session argument
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        session = _find_session(args, kwargs)
        if session is None:
            raise TypeError(
                f"{func.__name__} decorated with @with_auto_commit "
                "must receive an AsyncSession"
            )

        try:
            result = await func(*args, **kwargs)
            await session.commit()
            logger.debug(f"Auto-commit performed in {func.__name__}")
            return result
        except Exception as e:
            await session.rollback()
            logger.info(
                f"Rollback performed in {func.__name__} due to error: {type(e).__name__}"
            )
            raise

    return wrapper
