"""
Formatters utility.

Utility functions for formatting amounts in messages and reports.
"""

from decimal import ROUND_HALF_UP, Decimal


def quantize_money(amount: Decimal, places: int = 8) -> Decimal:
    """Round an amount to the stored money precision."""
    return Decimal(amount).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def format_usdt(amount: Decimal) -> str:
    """
    Format an amount as a USDT string with two decimals.

    Args:
        amount: Amount

    Returns:
        String like "1,234.50 USDT"
    """
    return f"{Decimal(amount).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):,} USDT"


def format_amount_list(amounts: list[Decimal]) -> str:
    """Join amounts as plain numbers: "10, 100, 250"."""
    return ", ".join(f"{amount.normalize():f}" for amount in amounts)
