"""
Cap-aware allocation of earnings across staking entries.

Pure functions: nothing here touches the database. Services pass entries in
(oldest first), get an allocation plan back, and apply it.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol


ZERO = Decimal("0")


class CappedEntry(Protocol):
    """Anything with an id, a cap and earnings so far."""

    id: int
    max_earning: Decimal
    total_earned: Decimal


@dataclass
class Allocation:
    """Amount applied to one entry."""

    entry_id: int
    amount: Decimal
    reaches_cap: bool


@dataclass
class AllocationResult:
    """Outcome of spreading an amount over entries."""

    allocations: list[Allocation] = field(default_factory=list)
    applied: Decimal = ZERO
    missed: Decimal = ZERO


def remaining_cap(entry: CappedEntry) -> Decimal:
    """Earnings left before the entry's cap (0 for uncapped entries)."""
    if entry.max_earning <= 0:
        return ZERO
    return max(ZERO, entry.max_earning - entry.total_earned)


def allocate_across_entries(
    entries: Sequence[CappedEntry], amount: Decimal
) -> AllocationResult:
    """
    Spread an amount over capped entries, oldest first.

    Each entry takes min(remaining amount, remaining cap). Whatever does not
    fit is reported as missed, so applied + missed == amount.

    Args:
        entries: Candidate entries in priority order
        amount: Amount to distribute

    Returns:
        Allocation plan
    """
    result = AllocationResult()
    remaining = Decimal(amount)

    for entry in entries:
        if remaining <= 0:
            break
        capacity = remaining_cap(entry)
        if capacity <= 0:
            continue
        applied = min(remaining, capacity)
        result.allocations.append(
            Allocation(
                entry_id=entry.id,
                amount=applied,
                reaches_cap=applied >= capacity,
            )
        )
        result.applied += applied
        remaining -= applied

    result.missed = max(ZERO, remaining)
    return result


def select_bonus_eligible_entries(
    entries: Iterable[CappedEntry], voucher_stake_ids: set[int]
) -> list[CappedEntry]:
    """
    Pick the entries a sponsor bonus may be applied to.

    Real (non-voucher) entries take priority. Voucher positions are used only
    when there is no real entry, and only those with a non-zero cap.

    Args:
        entries: Sponsor's active entries, oldest first
        voucher_stake_ids: IDs of entries created from vouchers

    Returns:
        Eligible entries, order preserved
    """
    entries = list(entries)
    real = [e for e in entries if e.id not in voucher_stake_ids]
    if real:
        return [e for e in real if e.max_earning > 0]
    return [e for e in entries if e.max_earning > 0]


def principal_return(amount: Decimal, total_earned: Decimal) -> Decimal:
    """Principal returned on unstake: amount less earnings, never negative."""
    return max(ZERO, Decimal(amount) - Decimal(total_earned))


def daily_payout(daily_earning: Decimal, entry: CappedEntry) -> tuple[Decimal, Decimal]:
    """
    Split one day's ROI into (paid, missed) for an entry.

    Uncapped entries are paid in full.
    """
    if entry.max_earning <= 0:
        return daily_earning, ZERO
    paid = min(daily_earning, remaining_cap(entry))
    return paid, daily_earning - paid
