"""
Voucher model.

Redeemable code. Redeemed at most once; flips to expired once
expires_at passes.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.config.business_constants import STAKE_CURRENCY, VOUCHER_DEFAULT_BADGE_COLOR
from app.models.base import Base
from app.models.enums import VoucherStatus, VoucherType
from app.models.types import MoneyType


class Voucher(Base):
    """Voucher entity."""

    __tablename__ = "vouchers"
    __table_args__ = (
        Index("idx_vouchers_user_status", "user_id", "status"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    code: Mapped[str] = mapped_column(
        String(32), unique=True, index=True, nullable=False
    )
    user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    value: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    currency: Mapped[str] = mapped_column(
        String(10), default=STAKE_CURRENCY, nullable=False
    )
    type: Mapped[str] = mapped_column(
        String(20), default=VoucherType.PACKAGE.value, nullable=False
    )

    # Display
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    badge: Mapped[str | None] = mapped_column(String(50), nullable=True)
    badge_color: Mapped[str] = mapped_column(
        String(20), default=VOUCHER_DEFAULT_BADGE_COLOR, nullable=False
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    link_text: Mapped[str | None] = mapped_column(String(255), nullable=True)
    link_href: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    # Package linkage and ROI rules
    package_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    package_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    roi_validity_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    roi_end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    affects_max_cap: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    requires_real_package: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    # Promotional vouchers may be staked at their own value
    is_promotional: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    # Lifecycle
    status: Mapped[str] = mapped_column(
        String(20),
        default=VoucherStatus.ACTIVE.value,
        nullable=False,
        index=True,
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    used_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    used_on_package_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    applied_to_stake_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("staking_entries.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Voucher(id={self.id}, code={self.code!r}, type={self.type}, "
            f"value={self.value}, status={self.status})>"
        )
