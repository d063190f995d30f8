"""
UserBalance model.

Per-user wallet. Mutated only in the same transaction as the matching
staking entry change.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base
from app.models.types import MoneyType


if TYPE_CHECKING:
    from app.models.user import User


class UserBalance(Base):
    """
    UserBalance entity.

    Attributes:
        balance: Withdrawable funds
        on_staking: Principal locked in active/unstaking entries
        daily_earning: ROI credited by the latest daily run
        latest_earning: Same as daily_earning, kept for display
        team_earning: Lifetime team commissions credited
        max_earn: Lifetime direct bonus credited against caps
        missed_earnings: Commissions/ROI lost because caps were full
    """

    __tablename__ = "user_balances"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="balance_non_negative"),
        CheckConstraint("on_staking >= 0", name="on_staking_non_negative"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    on_staking: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    daily_earning: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    latest_earning: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    team_earning: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    max_earn: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    missed_earnings: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    user: Mapped["User"] = relationship(
        "User", back_populates="balance_row", lazy="raise"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<UserBalance(user_id={self.user_id}, balance={self.balance}, "
            f"on_staking={self.on_staking})>"
        )
