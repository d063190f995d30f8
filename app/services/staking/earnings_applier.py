"""
Apply an allocation plan to loaded staking entries and a wallet row.
"""

from datetime import datetime
from decimal import Decimal

from app.models.enums import StakingStatus
from app.models.staking_entry import StakingEntry
from app.models.user_balance import UserBalance
from app.services.staking.calculator import ZERO, AllocationResult


def complete_entry(entry: StakingEntry, balance: UserBalance, ended_at: datetime) -> None:
    """Close an entry and release its principal from on_staking."""
    entry.status = StakingStatus.COMPLETED.value
    entry.end_date = ended_at
    balance.on_staking = max(ZERO, balance.on_staking - entry.amount)


def apply_allocation(
    entries: list[StakingEntry],
    plan: AllocationResult,
    balance: UserBalance,
    now: datetime,
) -> list[StakingEntry]:
    """
    Add allocated amounts to entries; entries that hit their cap complete.

    Args:
        entries: Entries the plan was computed from
        plan: Allocation plan
        balance: Owner's wallet row (on_staking is released on completion)
        now: Completion timestamp

    Returns:
        Entries completed by this allocation
    """
    by_id = {entry.id: entry for entry in entries}
    completed: list[StakingEntry] = []

    for allocation in plan.allocations:
        entry = by_id[allocation.entry_id]
        entry.total_earned = Decimal(entry.total_earned) + allocation.amount
        if allocation.reaches_cap:
            complete_entry(entry, balance, now)
            completed.append(entry)

    return completed
