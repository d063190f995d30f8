"""
Bulk voucher issuance shared by admin tools and promotion rewards.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal

from app.config.business_constants import STAKE_CURRENCY, VOUCHER_DEFAULT_BADGE_COLOR
from app.models.enums import VoucherStatus, VoucherType
from app.models.voucher import Voucher
from app.repositories.voucher_repository import VoucherRepository
from app.services.voucher.codes import generate_unique_codes


@dataclass
class VoucherDraft:
    """Fields shared by every voucher of a batch."""

    value: Decimal
    title: str
    type: str = VoucherType.PACKAGE.value
    currency: str = STAKE_CURRENCY
    badge: str | None = None
    badge_color: str = VOUCHER_DEFAULT_BADGE_COLOR
    description: str | None = None
    link_text: str | None = None
    link_href: str | None = None
    package_id: int | None = None
    package_name: str | None = None
    roi_validity_days: int | None = None
    affects_max_cap: bool = False
    requires_real_package: bool = False
    is_promotional: bool = False
    expires_at: datetime | None = None
    user_id: int | None = None


async def create_vouchers_in_bulk(
    repo: VoucherRepository, draft: VoucherDraft, quantity: int
) -> list[Voucher]:
    """
    Insert `quantity` vouchers with fresh unique codes.

    Runs in the caller's transaction.

    Args:
        repo: Voucher repository
        draft: Shared voucher fields
        quantity: Number of vouchers

    Returns:
        Created vouchers
    """
    codes = await generate_unique_codes(repo, quantity)
    fields = asdict(draft)
    return await repo.bulk_create(
        [
            {**fields, "code": code, "status": VoucherStatus.ACTIVE.value}
            for code in codes
        ]
    )
