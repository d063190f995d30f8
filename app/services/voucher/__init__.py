"""Voucher services."""

from app.services.voucher.issuer import VoucherDraft, create_vouchers_in_bulk
from app.services.voucher.voucher_service import (
    VoucherRedemption,
    VoucherService,
    VoucherStake,
    display_status,
)


__all__ = [
    "VoucherDraft",
    "VoucherRedemption",
    "VoucherService",
    "VoucherStake",
    "create_vouchers_in_bulk",
    "display_status",
]
