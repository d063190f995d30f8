"""Wallet services."""

from app.services.wallet.wallet_service import WalletBalance, WalletService
from app.services.wallet.withdrawal_service import (
    WithdrawalResult,
    WithdrawalService,
    WithdrawalSettings,
)


__all__ = [
    "WalletBalance",
    "WalletService",
    "WithdrawalResult",
    "WithdrawalService",
    "WithdrawalSettings",
]
