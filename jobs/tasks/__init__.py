"""
Dramatiq actors.

The broker is imported first so every actor binds to it. Run workers with:
    dramatiq jobs.tasks
"""

from jobs.broker import broker  # noqa: F401
from jobs.tasks.daily_roi import distribute_daily_roi, run_daily_roi
from jobs.tasks.team_earnings import distribute_team_earnings, run_team_earnings
from jobs.tasks.voucher_expiry import expire_vouchers, run_voucher_expiry

__all__ = [
    "distribute_daily_roi",
    "distribute_team_earnings",
    "expire_vouchers",
    "run_daily_roi",
    "run_team_earnings",
    "run_voucher_expiry",
]
