"""
JSON serializers for procedure results.

Money is emitted as float and timestamps as ISO-8601 UTC strings.
"""

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from app.config.staking_packages import StakingPackage
from app.models.staking_entry import StakingEntry
from app.models.transaction_record import TransactionRecord
from app.models.voucher import Voucher
from app.utils.datetime_utils import isoformat_or_none


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def jsonable(value: Any) -> Any:
    """Convert a result tree into JSON-compatible values."""
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return isoformat_or_none(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, StakingEntry):
        return serialize_staking_entry(value)
    if isinstance(value, Voucher):
        return serialize_voucher(value)
    if isinstance(value, TransactionRecord):
        return serialize_transaction(value)
    if isinstance(value, StakingPackage):
        return serialize_package(value)
    if is_dataclass(value) and not isinstance(value, type):
        return {_camel(f.name): jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, tuple) and hasattr(value, "_asdict"):
        return {_camel(k): jsonable(v) for k, v in value._asdict().items()}
    if isinstance(value, dict):
        return {
            (_camel(k) if isinstance(k, str) else str(k)): jsonable(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple, set)):
        return [jsonable(v) for v in value]
    raise TypeError(f"Cannot serialize {type(value).__name__}")


def serialize_package(package: StakingPackage) -> dict[str, Any]:
    return {
        "id": package.id,
        "name": package.name,
        "amount": float(package.amount),
        "roi": float(package.roi),
        "cap": float(package.cap),
    }


def serialize_staking_entry(entry: StakingEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "userId": entry.user_id,
        "packageId": entry.package_id,
        "packageName": entry.package_name,
        "amount": float(entry.amount),
        "currency": entry.currency,
        "dailyRoi": float(entry.daily_roi),
        "cap": float(entry.cap),
        "maxEarning": float(entry.max_earning),
        "totalEarned": float(entry.total_earned),
        "status": entry.status,
        "startDate": isoformat_or_none(entry.start_date),
        "unstakeRequestedDate": isoformat_or_none(entry.unstake_requested_date),
        "cooldownEndDate": isoformat_or_none(entry.cooldown_end_date),
        "endDate": isoformat_or_none(entry.end_date),
        "createdAt": isoformat_or_none(entry.created_at),
    }


def serialize_voucher(voucher: Voucher, status: str | None = None) -> dict[str, Any]:
    return {
        "id": voucher.id,
        "code": voucher.code,
        "userId": voucher.user_id,
        "value": float(voucher.value),
        "currency": voucher.currency,
        "type": voucher.type,
        "title": voucher.title,
        "badge": voucher.badge,
        "badgeColor": voucher.badge_color,
        "description": voucher.description,
        "linkText": voucher.link_text,
        "linkHref": voucher.link_href,
        "packageId": voucher.package_id,
        "packageName": voucher.package_name,
        "roiValidityDays": voucher.roi_validity_days,
        "roiEndDate": isoformat_or_none(voucher.roi_end_date),
        "affectsMaxCap": voucher.affects_max_cap,
        "requiresRealPackage": voucher.requires_real_package,
        "isPromotional": voucher.is_promotional,
        "status": status or voucher.status,
        "expiresAt": isoformat_or_none(voucher.expires_at),
        "usedAt": isoformat_or_none(voucher.used_at),
        "usedOnPackageId": voucher.used_on_package_id,
        "appliedToStakeId": voucher.applied_to_stake_id,
        "createdAt": isoformat_or_none(voucher.created_at),
    }


def serialize_transaction(record: TransactionRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "type": record.type,
        "status": record.status,
        "amount": float(record.amount),
        "currency": record.currency,
        "description": record.description,
        "requestId": record.request_id,
        "transactionHash": record.transaction_hash,
        "toAddress": record.to_address,
        "createdAt": isoformat_or_none(record.created_at),
    }
