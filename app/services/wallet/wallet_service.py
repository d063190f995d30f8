"""
Wallet service.

Balance and history reads for the caller, and admin deposit crediting.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import STAKE_CURRENCY, TRANSACTION_HISTORY_LIMIT
from app.models.enums import TransactionStatus, TransactionType
from app.models.transaction_record import TransactionRecord
from app.repositories.transaction_record_repository import TransactionRecordRepository
from app.repositories.user_balance_repository import UserBalanceRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService, transaction
from app.utils.exceptions import BadRequestError, ConflictError, NotFoundError


@dataclass
class WalletBalance:
    """Balance summary shown in the wallet view."""

    balance: Decimal = Decimal("0")
    daily_earning: Decimal = Decimal("0")
    latest_earning: Decimal = Decimal("0")
    on_staking: Decimal = Decimal("0")
    team_earning: Decimal = Decimal("0")
    missed_earnings: Decimal = Decimal("0")


class WalletService(BaseService):
    """Wallet reads and deposits."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize wallet service."""
        super().__init__(session)
        self.balance_repo = UserBalanceRepository(session)
        self.transaction_repo = TransactionRecordRepository(session)
        self.user_repo = UserRepository(session)

    async def get_wallet_balance(self, user_id: int) -> WalletBalance:
        """Caller's balance; zeros when no wallet row exists yet."""
        row = await self.balance_repo.get_by_user(user_id)
        if row is None:
            return WalletBalance()
        return WalletBalance(
            balance=row.balance,
            daily_earning=row.daily_earning,
            latest_earning=row.latest_earning,
            on_staking=row.on_staking,
            team_earning=row.team_earning,
            missed_earnings=row.missed_earnings,
        )

    async def get_transactions(
        self, user_id: int, limit: int = TRANSACTION_HISTORY_LIMIT
    ) -> list[TransactionRecord]:
        """Caller's latest transaction records, newest first."""
        return await self.transaction_repo.get_latest_by_user(
            user_id, min(limit, TRANSACTION_HISTORY_LIMIT)
        )

    @transaction
    async def credit_deposit(
        self,
        user_id: int,
        amount: Decimal,
        transaction_hash: str,
        from_address: str | None = None,
    ) -> TransactionRecord:
        """
        Admin: credit a confirmed deposit to a user's balance.

        Raises:
            BadRequestError: Non-positive amount or empty hash
            NotFoundError: Unknown user
            ConflictError: Hash already credited
        """
        amount = Decimal(amount)
        if amount <= 0:
            raise BadRequestError("Deposit amount must be positive")
        if not transaction_hash:
            raise BadRequestError("Transaction hash is required")
        if await self.user_repo.get_by_id(user_id) is None:
            raise NotFoundError("User not found")
        if await self.transaction_repo.exists(transaction_hash=transaction_hash):
            raise ConflictError("Deposit already credited")

        balance = await self.balance_repo.get_or_create(user_id, for_update=True)
        balance.balance += amount

        record = await self.transaction_repo.create(
            user_id=user_id,
            type=TransactionType.DEPOSIT.value,
            status=TransactionStatus.COMPLETED.value,
            amount=amount,
            currency=STAKE_CURRENCY,
            description="Deposit credited",
            transaction_hash=transaction_hash,
            from_address=from_address,
        )
        self.logger.info(f"Deposit credited: user={user_id} amount={amount}")
        return record
