"""
Procedure input models.

Each procedure validates its JSON body against one of these models;
validation failures are reported as BAD_REQUEST.
"""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.config.business_constants import (
    LEADERBOARD_DEFAULT_MIN_PACKAGE_ID,
    LEADERBOARD_DEFAULT_MIN_STAKE,
    MAX_TEAM_LEVELS,
    TEAM_PAGE_DEFAULT_LIMIT,
    TEAM_PAGE_MAX_LIMIT,
    TEAM_SPHERE_DEFAULT_MAX,
    TRANSACTION_HISTORY_LIMIT,
    VOUCHER_DEFAULT_BADGE_COLOR,
    VOUCHER_MAX_BULK_QUANTITY,
)
from app.config.promotion_rewards import PROMOTION_TYPE_PRELAUNCH


class ProcedureInput(BaseModel):
    """Base for procedure inputs."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class EmptyInput(ProcedureInput):
    """Procedures without parameters."""


# Staking

class CreateStakeInput(ProcedureInput):
    amount: Decimal = Field(..., gt=0)


class StakeIdInput(ProcedureInput):
    stake_id: int = Field(..., alias="stakeId", ge=1)

    model_config = ConfigDict(populate_by_name=True)


# Vouchers

class GetVouchersInput(ProcedureInput):
    status: Literal["active", "used", "expired", "all"] = "all"
    type: Literal["package", "withdraw", "futures", "bonus", "trading_fee", "all"] = "all"


class VoucherIdInput(ProcedureInput):
    voucher_id: int = Field(..., alias="voucherId", ge=1)

    model_config = ConfigDict(populate_by_name=True)


class RedeemVoucherInput(ProcedureInput):
    code: str = Field(..., min_length=1, max_length=64)
    package_id: int | None = Field(default=None, alias="packageId", ge=0)

    model_config = ConfigDict(populate_by_name=True)


class CreateVouchersInput(ProcedureInput):
    value: Decimal = Field(..., gt=0)
    title: str = Field(..., min_length=1, max_length=120)
    type: Literal["package", "withdraw", "futures", "bonus", "trading_fee"] = "package"
    quantity: int = Field(default=1, ge=1, le=VOUCHER_MAX_BULK_QUANTITY)
    badge: str | None = Field(default=None, max_length=32)
    badge_color: str = Field(default=VOUCHER_DEFAULT_BADGE_COLOR, alias="badgeColor")
    description: str | None = Field(default=None, max_length=500)
    link_text: str | None = Field(default=None, alias="linkText", max_length=64)
    link_href: str | None = Field(default=None, alias="linkHref", max_length=500)
    package_id: int | None = Field(default=None, alias="packageId", ge=0)
    roi_validity_days: int | None = Field(default=None, alias="roiValidityDays", ge=1)
    affects_max_cap: bool = Field(default=False, alias="affectsMaxCap")
    requires_real_package: bool = Field(default=False, alias="requiresRealPackage")
    is_promotional: bool = Field(default=False, alias="isPromotional")
    expires_in_days: int | None = Field(default=None, alias="expiresInDays", ge=1)
    user_id: int | None = Field(default=None, alias="userId", ge=1)

    model_config = ConfigDict(populate_by_name=True)


class UnassignedVouchersInput(ProcedureInput):
    status: Literal["active", "used", "expired", "all"] = "all"


# Team

class TeamMembersInput(ProcedureInput):
    level: int = Field(default=1, ge=1, le=MAX_TEAM_LEVELS)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=TEAM_PAGE_DEFAULT_LIMIT, ge=1, le=TEAM_PAGE_MAX_LIMIT)


class SphereImagesInput(ProcedureInput):
    max_images: int = Field(default=TEAM_SPHERE_DEFAULT_MAX, alias="maxImages", ge=1, le=500)
    max_levels: int = Field(default=MAX_TEAM_LEVELS, alias="maxLevels", ge=1, le=MAX_TEAM_LEVELS)

    model_config = ConfigDict(populate_by_name=True)


class LeaderboardInput(ProcedureInput):
    limit: int = Field(default=50, ge=5, le=100)
    min_stake: Decimal = Field(default=LEADERBOARD_DEFAULT_MIN_STAKE, alias="minStake", ge=0)
    min_package_id: int = Field(
        default=LEADERBOARD_DEFAULT_MIN_PACKAGE_ID, alias="minPackageId", ge=0
    )

    model_config = ConfigDict(populate_by_name=True)


# Wallet

class TransactionsInput(ProcedureInput):
    limit: int = Field(default=TRANSACTION_HISTORY_LIMIT, ge=1, le=TRANSACTION_HISTORY_LIMIT)


class RequestWithdrawalInput(ProcedureInput):
    amount: Decimal = Field(..., gt=0)
    address: str = Field(..., min_length=8, max_length=128)
    request_id: str | None = Field(default=None, alias="requestId", min_length=8, max_length=64)

    model_config = ConfigDict(populate_by_name=True)


class CreditDepositInput(ProcedureInput):
    user_id: int = Field(..., alias="userId", ge=1)
    amount: Decimal = Field(..., gt=0)
    transaction_hash: str = Field(..., alias="transactionHash", min_length=1, max_length=128)
    from_address: str | None = Field(default=None, alias="fromAddress", max_length=128)

    model_config = ConfigDict(populate_by_name=True)


class SettleWithdrawalInput(ProcedureInput):
    request_id: str = Field(..., alias="requestId", min_length=1, max_length=64)
    success: bool
    transaction_hash: str | None = Field(default=None, alias="transactionHash", max_length=128)

    model_config = ConfigDict(populate_by_name=True)


# Promotion

class RegisterPromotionInput(ProcedureInput):
    promotion_type: Literal["prelaunch"] = Field(
        default=PROMOTION_TYPE_PRELAUNCH, alias="promotionType"
    )

    model_config = ConfigDict(populate_by_name=True)


# Admin users and jobs

class RegisterUserInput(ProcedureInput):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    name: str | None = Field(default=None, max_length=255)
    username: str | None = Field(default=None, max_length=64)
    image: str | None = Field(default=None, max_length=500)
    invite_code: str | None = Field(default=None, alias="inviteCode", max_length=32)
    first_name: str | None = Field(default=None, alias="firstName", max_length=120)
    last_name: str | None = Field(default=None, alias="lastName", max_length=120)

    model_config = ConfigDict(populate_by_name=True)


class DistributeDailyInput(ProcedureInput):
    user_id: int | None = Field(default=None, alias="userId", ge=1)

    model_config = ConfigDict(populate_by_name=True)
