"""
Tests for withdrawal fee rules.

The typed amount is the total debited; below 30 USDT a 6% fee is taken
from it.
"""

from decimal import Decimal

import pytest

from app.services.wallet.withdrawal_service import (
    WithdrawalService,
    calculate_amount_to_send,
    calculate_withdrawal_fee,
    fee_request_id,
)


class TestWithdrawalFee:
    """Test fee calculation."""

    @pytest.mark.parametrize(
        ("total", "fee", "to_send"),
        [
            ("10", "0.60", "9.40"),
            ("29.99", "1.80", "28.19"),
            ("30", "0", "30.00"),
            ("100", "0", "100.00"),
        ],
    )
    def test_fee_and_amount_to_send(self, total, fee, to_send):
        assert calculate_withdrawal_fee(Decimal(total)) == Decimal(fee)
        assert calculate_amount_to_send(Decimal(total)) == Decimal(to_send)

    def test_fee_record_key(self):
        assert fee_request_id("req-12345678") == "req-12345678:fee"

    def test_settings(self):
        settings = WithdrawalService.get_withdrawal_settings()
        assert settings.min_amount == Decimal("10")
        assert settings.fee_threshold == Decimal("30")
        assert settings.fee_percentage == Decimal("6")
        assert settings.min_receive_amount == Decimal("9.40")
