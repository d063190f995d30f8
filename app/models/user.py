"""
User model.

Represents a registered platform user. Identity is resolved upstream;
this row only carries profile data used by team views.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.enums import UserRole


if TYPE_CHECKING:
    from app.models.staking_entry import StakingEntry
    from app.models.user_balance import UserBalance


class User(Base):
    """User model."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    username: Mapped[str | None] = mapped_column(
        String(255), nullable=True, index=True
    )
    image: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    invite_code: Mapped[str] = mapped_column(
        String(32), unique=True, index=True, nullable=False
    )
    role: Mapped[str] = mapped_column(
        String(20), default=UserRole.USER.value, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    balance_row: Mapped["UserBalance | None"] = relationship(
        "UserBalance", back_populates="user", uselist=False, lazy="raise"
    )
    staking_entries: Mapped[list["StakingEntry"]] = relationship(
        "StakingEntry", back_populates="user", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<User(id={self.id}, email={self.email!r})>"
