"""
StakingEntry model.

One subscription to a staking package (or a voucher-funded position).
Entries are never hard-deleted; they end in `completed`.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.config.business_constants import STAKE_CURRENCY
from app.models.base import Base
from app.models.enums import StakingStatus
from app.models.types import CapMultiplierType, MoneyType, RatePercentType


if TYPE_CHECKING:
    from app.models.user import User


class StakingEntry(Base):
    """
    StakingEntry entity.

    Attributes:
        amount: Principal
        daily_roi: Daily ROI percent
        cap: Cap multiplier (0 for flushed-ROI voucher positions)
        max_earning: amount * cap, 0 means uncapped
        total_earned: ROI, bonus and team earnings applied so far
        status: active, unstaking or completed
        cooldown_end_date: When an unstaking entry may be completed
    """

    __tablename__ = "staking_entries"
    __table_args__ = (
        CheckConstraint("amount > 0", name="amount_positive"),
        CheckConstraint("total_earned >= 0", name="total_earned_non_negative"),
        CheckConstraint(
            "max_earning = 0 OR total_earned <= max_earning",
            name="total_earned_within_cap",
        ),
        Index("idx_staking_entries_user_status", "user_id", "status"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    package_id: Mapped[int] = mapped_column(Integer, nullable=False)
    package_name: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    currency: Mapped[str] = mapped_column(
        String(10), default=STAKE_CURRENCY, nullable=False
    )
    daily_roi: Mapped[Decimal] = mapped_column(RatePercentType, nullable=False)
    cap: Mapped[Decimal] = mapped_column(CapMultiplierType, nullable=False)
    max_earning: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    total_earned: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=StakingStatus.ACTIVE.value,
        nullable=False,
        index=True,
    )
    start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    unstake_requested_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    cooldown_end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    user: Mapped["User"] = relationship(
        "User", back_populates="staking_entries", lazy="raise"
    )

    @property
    def is_capped(self) -> bool:
        """Whether the entry has a finite earnings cap."""
        return self.max_earning > 0

    @property
    def remaining_cap(self) -> Decimal:
        """Earnings left before the cap; 0 for uncapped entries."""
        if not self.is_capped:
            return Decimal("0")
        return max(Decimal("0"), self.max_earning - self.total_earned)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<StakingEntry(id={self.id}, user_id={self.user_id}, "
            f"package_id={self.package_id}, amount={self.amount}, "
            f"status={self.status})>"
        )
