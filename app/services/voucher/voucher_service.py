"""
Voucher service.

Listing, redemption by code, redemption into a staking position and admin
bulk creation. A voucher moves active -> used at most once; the transition
is a conditional UPDATE inside the redeeming transaction.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import (
    STAKE_CURRENCY,
    VOUCHER_BADGE_COLORS,
    VOUCHER_DEFAULT_ROI_VALIDITY_DAYS,
    VOUCHER_MAX_BULK_QUANTITY,
    VOUCHER_POSITION_NAME,
)
from app.config.staking_packages import (
    STAKING_PACKAGES,
    StakingPackage,
    calculate_max_earning,
    find_package_for_amount,
    get_package,
)
from app.models.enums import (
    StakingStatus,
    TransactionStatus,
    TransactionType,
    VoucherStatus,
    VoucherType,
)
from app.models.staking_entry import StakingEntry
from app.models.voucher import Voucher
from app.repositories.staking_entry_repository import StakingEntryRepository
from app.repositories.transaction_record_repository import TransactionRecordRepository
from app.repositories.user_balance_repository import UserBalanceRepository
from app.repositories.user_repository import UserRepository
from app.repositories.voucher_repository import VoucherRepository
from app.services.base_service import BaseService, transaction
from app.services.voucher.issuer import VoucherDraft, create_vouchers_in_bulk
from app.utils.datetime_utils import as_utc, utc_now
from app.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError


STATUS_FILTER_ALL = "all"


def is_expired(voucher: Voucher, now: datetime) -> bool:
    """Whether an active voucher is past its expiry."""
    expires_at = as_utc(voucher.expires_at)
    return expires_at is not None and expires_at < now


def display_status(voucher: Voucher, now: datetime) -> str:
    """Status shown to users; active vouchers past expiry read as expired."""
    if voucher.status == VoucherStatus.ACTIVE.value and is_expired(voucher, now):
        return VoucherStatus.EXPIRED.value
    return voucher.status


@dataclass
class VoucherRedemption:
    """Outcome of redeeming a voucher by code."""

    voucher: Voucher
    credited: Decimal
    message: str


@dataclass
class VoucherStake:
    """Outcome of turning a voucher into a staking position."""

    voucher: Voucher
    entry: StakingEntry
    package: StakingPackage


class VoucherService(BaseService):
    """Voucher operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize voucher service."""
        super().__init__(session)
        self.voucher_repo = VoucherRepository(session)
        self.staking_repo = StakingEntryRepository(session)
        self.balance_repo = UserBalanceRepository(session)
        self.transaction_repo = TransactionRecordRepository(session)
        self.user_repo = UserRepository(session)

    async def get_vouchers(
        self,
        user_id: int,
        status: str | None = None,
        voucher_type: str | None = None,
    ) -> list[tuple[Voucher, str]]:
        """
        List the caller's vouchers with their display status, newest first.

        The status filter applies to the display status, so an active voucher
        past its expiry matches "expired".
        """
        now = utc_now()
        type_filter = None if voucher_type in (None, STATUS_FILTER_ALL) else voucher_type
        vouchers = await self.voucher_repo.list_by_user(user_id, type_filter)

        listed = [(voucher, display_status(voucher, now)) for voucher in vouchers]
        if status and status != STATUS_FILTER_ALL:
            listed = [item for item in listed if item[1] == status]
        return listed

    async def get_voucher_by_id(self, user_id: int, voucher_id: int) -> tuple[Voucher, str]:
        """
        Get one of the caller's vouchers.

        Raises:
            NotFoundError: Missing or owned by someone else
        """
        voucher = await self.voucher_repo.get_owned(voucher_id, user_id)
        if voucher is None:
            raise NotFoundError("Voucher not found")
        return voucher, display_status(voucher, utc_now())

    async def _reject_if_expired(self, voucher: Voucher, now: datetime) -> None:
        """Persist the expired flip, then reject."""
        if not is_expired(voucher, now):
            return
        voucher.status = VoucherStatus.EXPIRED.value
        await self.commit()
        self.logger.info(f"Voucher {voucher.id} expired on access")
        raise BadRequestError("Voucher has expired")

    @transaction
    async def redeem_voucher_by_code(
        self, user_id: int, code: str, package_id: int | None = None
    ) -> VoucherRedemption:
        """
        Redeem a voucher by its code.

        Withdraw vouchers are consumed and credited to the balance. Other
        types are assigned to the caller and stay active for later use.

        Raises:
            NotFoundError: Unknown code
            ForbiddenError: Voucher belongs to another user
            BadRequestError: Not active, expired or lost a concurrent race
        """
        code = code.strip().upper()
        voucher = await self.voucher_repo.get_by_code(code)
        if voucher is None:
            raise NotFoundError("Invalid voucher code")
        if voucher.user_id is not None and voucher.user_id != user_id:
            raise ForbiddenError("This voucher does not belong to you")
        if voucher.status != VoucherStatus.ACTIVE.value:
            raise BadRequestError(f"Voucher is already {voucher.status}")

        now = utc_now()
        await self._reject_if_expired(voucher, now)

        if package_id is not None and get_package(package_id) is None:
            raise BadRequestError(f"Invalid package ID: {package_id}")

        # Double-check under lock; another request may have won meanwhile.
        voucher = await self.voucher_repo.get_by_code(code, for_update=True)
        if voucher is None:
            raise NotFoundError("Invalid voucher code")
        if voucher.user_id is not None and voucher.user_id != user_id:
            raise ForbiddenError("This voucher does not belong to you")
        if voucher.status != VoucherStatus.ACTIVE.value:
            raise BadRequestError(f"Voucher is already {voucher.status}")

        if voucher.type != VoucherType.WITHDRAW.value:
            voucher.user_id = user_id
            if package_id is not None and voucher.package_id is None:
                package = get_package(package_id)
                voucher.package_id = package.id
                voucher.package_name = package.name
            await self.session.flush()
            self.logger.info(f"Voucher {voucher.id} assigned to user {user_id}")
            return VoucherRedemption(
                voucher=voucher,
                credited=Decimal("0"),
                message="Voucher added to your account",
            )

        won = await self.voucher_repo.mark_used_if_active(
            voucher.id, user_id=user_id, used_at=now, updated_at=now
        )
        if not won:
            raise BadRequestError("Voucher is already used")
        await self.session.refresh(voucher)

        balance = await self.balance_repo.get_or_create(user_id, for_update=True)
        balance.balance += voucher.value

        await self.transaction_repo.create(
            user_id=user_id,
            type=TransactionType.REWARD.value,
            status=TransactionStatus.COMPLETED.value,
            amount=voucher.value,
            currency=voucher.currency,
            description=f"Voucher redeemed: {voucher.title}",
        )
        await self.session.flush()

        self.logger.info(
            f"Withdraw voucher {voucher.id} redeemed by user {user_id}: {voucher.value}"
        )
        return VoucherRedemption(
            voucher=voucher,
            credited=Decimal(voucher.value),
            message=f"{voucher.value} {voucher.currency} added to your balance",
        )

    @staticmethod
    def resolve_package(voucher: Voucher) -> StakingPackage | None:
        """
        Find the package a voucher stakes into.

        By package_id, then package_name, then exact value. Promotional
        vouchers without a match fall back to the entry tier.
        """
        if voucher.package_id is not None:
            return get_package(voucher.package_id)
        if voucher.package_name:
            name = voucher.package_name.lower()
            for pkg in STAKING_PACKAGES:
                if pkg.name.lower() == name:
                    return pkg
        package = find_package_for_amount(voucher.value)
        if package is None and voucher.is_promotional:
            package = STAKING_PACKAGES[0]
        return package

    @transaction
    async def use_voucher_for_stake(self, user_id: int, voucher_id: int) -> VoucherStake:
        """
        Turn a package voucher into a staking position.

        The position pays the package's ROI until roi_end_date. It is capped
        at value * cap only when the voucher affects the max cap; otherwise
        its ROI is flushed (max_earning = 0). No sponsor bonus is paid.

        Raises:
            NotFoundError: Voucher missing or not owned
            BadRequestError: Any guard failed or the voucher was used concurrently
        """
        voucher = await self.voucher_repo.get_owned(voucher_id, user_id)
        if voucher is None:
            raise NotFoundError("Voucher not found")
        if voucher.status != VoucherStatus.ACTIVE.value:
            raise BadRequestError(f"Voucher is already {voucher.status}")

        now = utc_now()
        await self._reject_if_expired(voucher, now)

        if voucher.type != VoucherType.PACKAGE.value:
            raise BadRequestError("This voucher cannot be used for staking packages")

        package = self.resolve_package(voucher)
        if package is None:
            raise BadRequestError(
                f"No matching package found for voucher value: {voucher.value}"
            )
        value = Decimal(voucher.value)
        if not voucher.is_promotional and value != package.amount:
            raise BadRequestError(
                f"Voucher value {value} does not match {package.name} "
                f"amount {package.amount}"
            )

        if voucher.requires_real_package:
            voucher_stake_ids = await self.voucher_repo.get_applied_stake_ids([user_id])
            has_real = await self.staking_repo.has_active_entry_excluding(
                user_id, voucher_stake_ids
            )
            if not has_real:
                raise BadRequestError(
                    "This voucher requires you to have purchased a real package first. "
                    "Please purchase a staking package before using this voucher."
                )

        if voucher.affects_max_cap:
            cap = package.cap
            max_earning = calculate_max_earning(value, package.cap)
        else:
            cap = Decimal("0")
            max_earning = Decimal("0")

        validity_days = voucher.roi_validity_days or VOUCHER_DEFAULT_ROI_VALIDITY_DAYS
        roi_end_date = now + timedelta(days=validity_days)

        won = await self.voucher_repo.mark_used_if_active(
            voucher.id,
            used_at=now,
            used_on_package_id=package.id,
            roi_end_date=roi_end_date,
            updated_at=now,
        )
        if not won:
            raise BadRequestError("Voucher is already used")

        entry = await self.staking_repo.create(
            user_id=user_id,
            package_id=package.id,
            package_name=VOUCHER_POSITION_NAME,
            amount=value,
            currency=voucher.currency or STAKE_CURRENCY,
            daily_roi=package.roi,
            cap=cap,
            max_earning=max_earning,
            total_earned=Decimal("0"),
            status=StakingStatus.ACTIVE.value,
            start_date=now,
            created_at=now,
        )

        await self.session.refresh(voucher)
        voucher.applied_to_stake_id = entry.id

        balance = await self.balance_repo.get_or_create(user_id, for_update=True)
        balance.on_staking += value

        await self.transaction_repo.create(
            user_id=user_id,
            type=TransactionType.REWARD.value,
            status=TransactionStatus.COMPLETED.value,
            amount=value,
            currency=voucher.currency,
            description=f"Voucher redeemed for {package.name} package",
        )
        await self.session.flush()

        self.logger.info(
            f"Voucher {voucher.id} staked by user {user_id}: "
            f"package={package.name} value={value} max_earning={max_earning}"
        )
        return VoucherStake(voucher=voucher, entry=entry, package=package)

    @transaction
    async def create_vouchers(self, draft: VoucherDraft, quantity: int) -> list[Voucher]:
        """
        Admin: issue a batch of vouchers.

        Raises:
            BadRequestError: Invalid value, quantity, title, badge color, type or package
            NotFoundError: Target user does not exist
        """
        if draft.value <= 0:
            raise BadRequestError("Voucher value must be positive")
        if not 1 <= quantity <= VOUCHER_MAX_BULK_QUANTITY:
            raise BadRequestError(
                f"Quantity must be between 1 and {VOUCHER_MAX_BULK_QUANTITY}"
            )
        if not draft.title or not draft.title.strip():
            raise BadRequestError("Title is required")
        if draft.badge_color not in VOUCHER_BADGE_COLORS:
            raise BadRequestError(
                f"Badge color must be one of: {', '.join(VOUCHER_BADGE_COLORS)}"
            )
        if draft.type not in {t.value for t in VoucherType}:
            raise BadRequestError(f"Unknown voucher type: {draft.type}")
        if draft.package_id is not None:
            package = get_package(draft.package_id)
            if package is None:
                raise BadRequestError(f"Invalid package ID: {draft.package_id}")
            draft.package_name = draft.package_name or package.name
        if draft.user_id is not None and await self.user_repo.get_by_id(draft.user_id) is None:
            raise NotFoundError("User not found")

        vouchers = await create_vouchers_in_bulk(self.voucher_repo, draft, quantity)
        self.logger.info(
            f"Created {len(vouchers)} vouchers: type={draft.type} value={draft.value}"
        )
        return vouchers

    async def get_unassigned_vouchers(self, status: str | None = None) -> list[Voucher]:
        """Admin: vouchers without an owner."""
        if status == STATUS_FILTER_ALL:
            status = None
        return await self.voucher_repo.list_unassigned(status)
