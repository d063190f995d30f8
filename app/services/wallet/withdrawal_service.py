"""
Withdrawal service.

The amount a user enters is the total debited from the balance. Below the
fee threshold a percentage fee comes out of that total; the rest is sent.
Requests are idempotent on request_id and only one withdrawal per user may
be in flight at a time.
"""

import uuid
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import (
    MIN_WITHDRAWAL_AMOUNT,
    STAKE_CURRENCY,
    WITHDRAWAL_FEE_RATE,
    WITHDRAWAL_FEE_THRESHOLD,
)
from app.models.enums import (
    IN_FLIGHT_TRANSACTION_STATUSES,
    TransactionStatus,
    TransactionType,
)
from app.models.transaction_record import TransactionRecord
from app.repositories.transaction_record_repository import TransactionRecordRepository
from app.repositories.user_balance_repository import UserBalanceRepository
from app.services.base_service import BaseService, transaction
from app.utils.exceptions import BadRequestError, ConflictError, NotFoundError


CENT = Decimal("0.01")


def calculate_withdrawal_fee(total: Decimal) -> Decimal:
    """Fee taken from a withdrawal total (zero at or above the threshold)."""
    total = Decimal(total)
    if total >= WITHDRAWAL_FEE_THRESHOLD:
        return Decimal("0")
    return (total * WITHDRAWAL_FEE_RATE).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_amount_to_send(total: Decimal) -> Decimal:
    """Amount actually sent after the fee."""
    return (Decimal(total) - calculate_withdrawal_fee(total)).quantize(
        CENT, rounding=ROUND_HALF_UP
    )


def fee_request_id(request_id: str) -> str:
    """Idempotency key of the fee record paired with a withdrawal."""
    return f"{request_id}:fee"


@dataclass
class WithdrawalSettings:
    """Limits shown before a withdrawal."""

    min_amount: Decimal
    fee_threshold: Decimal
    fee_percentage: Decimal
    min_receive_amount: Decimal


@dataclass
class WithdrawalResult:
    """Outcome of a withdrawal request."""

    record: TransactionRecord
    request_id: str
    total: Decimal
    fee: Decimal
    amount_to_send: Decimal
    duplicate: bool = False


class WithdrawalService(BaseService):
    """Withdrawal requests and settlement."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize withdrawal service."""
        super().__init__(session)
        self.balance_repo = UserBalanceRepository(session)
        self.transaction_repo = TransactionRecordRepository(session)

    @staticmethod
    def get_withdrawal_settings() -> WithdrawalSettings:
        """Minimums and fee rules."""
        return WithdrawalSettings(
            min_amount=MIN_WITHDRAWAL_AMOUNT,
            fee_threshold=WITHDRAWAL_FEE_THRESHOLD,
            fee_percentage=WITHDRAWAL_FEE_RATE * 100,
            min_receive_amount=calculate_amount_to_send(MIN_WITHDRAWAL_AMOUNT),
        )

    @transaction
    async def request_withdrawal(
        self,
        user_id: int,
        amount: Decimal,
        address: str,
        request_id: str | None = None,
    ) -> WithdrawalResult:
        """
        Debit the balance and record a pending withdrawal.

        Raises:
            BadRequestError: Below minimum, missing address, in-flight
                withdrawal or insufficient balance
            ConflictError: request_id used by another user
        """
        total = Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
        request_id = request_id or str(uuid.uuid4())
        fee = calculate_withdrawal_fee(total)
        amount_to_send = calculate_amount_to_send(total)

        if total < MIN_WITHDRAWAL_AMOUNT:
            raise BadRequestError(
                f"Minimum withdrawal is {MIN_WITHDRAWAL_AMOUNT} USDT "
                f"(you will receive {calculate_amount_to_send(MIN_WITHDRAWAL_AMOUNT)} "
                "USDT after fees)."
            )
        if not address or not address.strip():
            raise BadRequestError("Withdrawal address is required")

        existing = await self.transaction_repo.get_by_request_id(request_id)
        if existing is not None:
            if existing.user_id != user_id:
                raise ConflictError("Request ID already used")
            fee_record = await self.transaction_repo.get_by_request_id(
                fee_request_id(request_id)
            )
            existing_fee = fee_record.amount if fee_record is not None else Decimal("0")
            return WithdrawalResult(
                record=existing,
                request_id=request_id,
                total=existing.amount + existing_fee,
                fee=existing_fee,
                amount_to_send=existing.amount,
                duplicate=True,
            )

        balance = await self.balance_repo.get_by_user(user_id, for_update=True)
        # Checked under the balance row lock
        if await self.transaction_repo.get_in_flight_withdrawal(user_id) is not None:
            raise BadRequestError(
                "You already have a withdrawal in progress. "
                "Please wait for it to complete."
            )
        if balance is None or balance.balance < total:
            raise BadRequestError(
                f"Insufficient balance. You need {total} USDT "
                f"(you will receive {amount_to_send} USDT after {fee} fee)."
            )
        balance.balance -= total

        record = await self.transaction_repo.create(
            user_id=user_id,
            type=TransactionType.WITHDRAWAL.value,
            status=TransactionStatus.PENDING.value,
            amount=amount_to_send,
            currency=STAKE_CURRENCY,
            description=(
                f"USDT withdrawal: {amount_to_send} USDT to send "
                f"({total} USDT total deducted, {fee} USDT fee)"
            ),
            request_id=request_id,
            to_address=address.strip(),
        )
        if fee > 0:
            await self.transaction_repo.create(
                user_id=user_id,
                type=TransactionType.WITHDRAWAL_FEE.value,
                status=TransactionStatus.COMPLETED.value,
                amount=fee,
                currency=STAKE_CURRENCY,
                description=(
                    f"Withdrawal fee ({WITHDRAWAL_FEE_RATE * 100:.0f}% for withdrawals "
                    f"under {WITHDRAWAL_FEE_THRESHOLD} USDT)"
                ),
                request_id=fee_request_id(request_id),
            )

        self.logger.info(
            f"Withdrawal requested: user={user_id} total={total} fee={fee}"
        )
        return WithdrawalResult(
            record=record,
            request_id=request_id,
            total=total,
            fee=fee,
            amount_to_send=amount_to_send,
        )

    @transaction
    async def settle_withdrawal(
        self,
        request_id: str,
        success: bool,
        transaction_hash: str | None = None,
    ) -> TransactionRecord:
        """
        Admin: mark an in-flight withdrawal completed, or failed with refund.

        A failed withdrawal refunds the full debited total, fee included.

        Raises:
            NotFoundError: Unknown request
            BadRequestError: Withdrawal already settled
        """
        record = await self.transaction_repo.get_by_request_id(request_id, for_update=True)
        if record is None or record.type != TransactionType.WITHDRAWAL.value:
            raise NotFoundError("Withdrawal not found")
        if record.status not in IN_FLIGHT_TRANSACTION_STATUSES:
            raise BadRequestError(f"Withdrawal is already {record.status}")

        if success:
            record.status = TransactionStatus.COMPLETED.value
            record.transaction_hash = transaction_hash
            self.logger.info(f"Withdrawal {request_id} completed")
            return record

        refund = Decimal(record.amount)
        fee_record = await self.transaction_repo.get_by_request_id(
            fee_request_id(request_id), for_update=True
        )
        if fee_record is not None:
            refund += fee_record.amount
            fee_record.status = TransactionStatus.FAILED.value

        record.status = TransactionStatus.FAILED.value
        balance = await self.balance_repo.get_or_create(record.user_id, for_update=True)
        balance.balance += refund

        await self.transaction_repo.create(
            user_id=record.user_id,
            type=TransactionType.REFUND.value,
            status=TransactionStatus.COMPLETED.value,
            amount=refund,
            currency=record.currency,
            description=f"Refund for failed withdrawal {request_id}",
        )
        self.logger.warning(f"Withdrawal {request_id} failed, refunded {refund}")
        return record
