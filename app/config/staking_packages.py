"""
Single source of truth for staking package tiers.

Every module that needs package amounts, ROI or caps must import from here.
The catalog is an immutable tuple built at import time.
"""

from decimal import Decimal
from typing import NamedTuple


class StakingPackage(NamedTuple):
    """Staking package (node) tier."""

    id: int
    name: str
    amount: Decimal  # Exact principal required to subscribe
    roi: Decimal  # Daily ROI percent (1.0 = 1% per day)
    cap: Decimal  # Earnings cap multiplier (2.0 = 200% of principal)
    visible: bool = True  # Hidden tiers are legacy and not offered in listings


STAKING_PACKAGES: tuple[StakingPackage, ...] = (
    StakingPackage(0, "Trial Node", Decimal("10"), Decimal("0.8"), Decimal("1.5")),
    StakingPackage(1, "Bronze Node", Decimal("100"), Decimal("1.0"), Decimal("1.8")),
    # Legacy tier, same amount as Gold. Kept for historic entries.
    StakingPackage(2, "Silver Node", Decimal("250"), Decimal("1.1"), Decimal("2.0"), visible=False),
    StakingPackage(3, "Gold Node", Decimal("250"), Decimal("1.1"), Decimal("2.0")),
    StakingPackage(4, "Platinum Node", Decimal("500"), Decimal("1.2"), Decimal("2.3")),
    StakingPackage(5, "Diamond Node", Decimal("2000"), Decimal("1.4"), Decimal("3.0")),
    StakingPackage(6, "Titan Node", Decimal("5000"), Decimal("1.5"), Decimal("3.5")),
    StakingPackage(7, "Crown Node", Decimal("10000"), Decimal("1.6"), Decimal("4.0")),
    StakingPackage(8, "Elysium Vault", Decimal("25000"), Decimal("1.7"), Decimal("5.0")),
)

_PACKAGES_BY_ID: dict[int, StakingPackage] = {pkg.id: pkg for pkg in STAKING_PACKAGES}


def get_visible_packages() -> list[StakingPackage]:
    """Packages offered to users, in catalog order."""
    return [pkg for pkg in STAKING_PACKAGES if pkg.visible]


def get_package(package_id: int) -> StakingPackage | None:
    """
    Get package by ID.

    Args:
        package_id: Catalog ID

    Returns:
        Package or None if the ID is unknown
    """
    return _PACKAGES_BY_ID.get(package_id)


def find_package_for_amount(amount: Decimal) -> StakingPackage | None:
    """
    Find the package whose amount equals the given amount exactly.

    Visible tiers win over hidden ones when two tiers share an amount,
    so 250 resolves to Gold rather than legacy Silver.

    Args:
        amount: Principal amount

    Returns:
        Matching package or None
    """
    amount = Decimal(amount)
    for visible_first in (True, False):
        for pkg in STAKING_PACKAGES:
            if pkg.visible == visible_first and pkg.amount == amount:
                return pkg
    return None


def available_amounts() -> list[Decimal]:
    """Distinct subscribable amounts of visible packages, ascending."""
    return sorted({pkg.amount for pkg in get_visible_packages()})


def calculate_daily_earning(amount: Decimal, roi: Decimal) -> Decimal:
    """Daily earning for a principal at a daily ROI percent."""
    return Decimal(amount) * Decimal(roi) / Decimal("100")


def calculate_max_earning(amount: Decimal, cap: Decimal) -> Decimal:
    """Lifetime earning cap for a principal."""
    return Decimal(amount) * Decimal(cap)


def is_cap_reached(total_earned: Decimal, max_earning: Decimal) -> bool:
    """
    Check whether an entry has exhausted its cap.

    Entries with max_earning == 0 are uncapped (flushed-ROI voucher positions)
    and never reach a cap.
    """
    if max_earning <= 0:
        return False
    return total_earned >= max_earning
