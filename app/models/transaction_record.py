"""
TransactionRecord model.

Append-only audit log of wallet movements.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.config.business_constants import STAKE_CURRENCY
from app.models.base import Base
from app.models.enums import TransactionStatus
from app.models.types import MoneyType


class TransactionRecord(Base):
    """Transaction record entity."""

    __tablename__ = "transaction_records"
    __table_args__ = (
        Index("idx_transaction_records_user_type", "user_id", "type"),
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
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=TransactionStatus.COMPLETED.value, nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    currency: Mapped[str] = mapped_column(
        String(10), default=STAKE_CURRENCY, nullable=False
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    request_id: Mapped[str | None] = mapped_column(
        String(64), unique=True, nullable=True
    )
    transaction_hash: Mapped[str | None] = mapped_column(
        String(128), unique=True, nullable=True
    )
    from_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    to_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
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

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<TransactionRecord(id={self.id}, user_id={self.user_id}, "
            f"type={self.type}, amount={self.amount}, status={self.status})>"
        )
