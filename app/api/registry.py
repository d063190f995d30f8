"""
Procedure registry.

Procedures are plain async functions registered under their public name
("user.createStake") together with their input model and access level.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import EmptyInput, ProcedureInput


@dataclass
class ProcedureContext:
    """Per-call context handed to every procedure."""

    session: AsyncSession
    user_id: int | None = None

    @property
    def caller_id(self) -> int:
        """Authenticated caller (user procedures only)."""
        if self.user_id is None:
            raise RuntimeError("Procedure requires an authenticated user")
        return self.user_id


Handler = Callable[[ProcedureContext, Any], Awaitable[Any]]


@dataclass(frozen=True)
class Procedure:
    name: str
    handler: Handler
    input_model: type[ProcedureInput]
    admin: bool = False


PROCEDURES: dict[str, Procedure] = {}


def procedure(
    name: str,
    input_model: type[ProcedureInput] = EmptyInput,
    admin: bool = False,
) -> Callable[[Handler], Handler]:
    """
    Register a procedure.

    Usage:
        @procedure("user.createStake", CreateStakeInput)
        async def create_stake(ctx: ProcedureContext, data: CreateStakeInput):
            ...
    """
    def decorator(func: Handler) -> Handler:
        if name in PROCEDURES:
            raise ValueError(f"Procedure already registered: {name}")
        PROCEDURES[name] = Procedure(
            name=name, handler=func, input_model=input_model, admin=admin
        )
        return func

    return decorator
