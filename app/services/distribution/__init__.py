"""Scheduled distribution services."""

from app.services.distribution.roi_distributor import (
    DistributionSummary,
    RoiDistributor,
)
from app.services.distribution.team_earnings_distributor import (
    TeamDistributionSummary,
    TeamEarningsDistributor,
)
from app.services.distribution.voucher_expiry import expire_overdue_vouchers


__all__ = [
    "DistributionSummary",
    "RoiDistributor",
    "TeamDistributionSummary",
    "TeamEarningsDistributor",
    "expire_overdue_vouchers",
]
