"""
Withdrawal forecast and solvency analytics.

Pure functions over plain (amount, timestamp) series. Amounts are floats:
these are projections for a console report, not ledger values.
"""

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import NamedTuple

from app.config.business_constants import (
    REPORT_GROWTH_CLAMP,
    REPORT_TIMEZONE_OFFSET_HOURS,
)
from app.utils.datetime_utils import as_utc, utc_now


SECONDS_PER_DAY = 86400


class DatedAmount(NamedTuple):
    """An amount at a point in time."""

    amount: float
    created_at: datetime


class DayNet(NamedTuple):
    """Net withdrawal outflow for one reporting day."""

    day: str
    net: float


class DayProjection(NamedTuple):
    """Projected outflow for one future day."""

    day: str
    projected: float


class OpenStake(NamedTuple):
    """The parts of an open staking entry the solvency model needs."""

    amount: float
    daily_roi: float
    total_earned: float
    max_earning: float


@dataclass
class WithdrawalForecast:
    daily_average: float = 0.0
    weekly_average: float = 0.0
    monthly_average: float = 0.0
    projected_30_days: float = 0.0
    projected_30_days_with_growth: float = 0.0
    growth_rate: float = 0.0
    analysis_period: str = "No withdrawal data available"
    max_daily_last_90_days: float = 0.0
    max_daily_last_30_days: float = 0.0
    p90_daily_last_30_days: float = 0.0
    next_14_days: list[DayProjection] = field(default_factory=list)


@dataclass
class GrowthAnalysis:
    user_growth_rate: float = 0.0  # % per day
    staking_growth_rate: float = 0.0  # % per day
    deposit_growth_rate: float = 0.0  # % per day
    avg_stake_per_user: float = 0.0
    days_analyzed: int = 0


@dataclass
class FutureProjections:
    staking_1_month: float
    staking_3_months: float
    staking_6_months: float
    users_1_month: float
    users_3_months: float
    users_6_months: float


@dataclass
class BankruptcyAnalysis:
    current_assets: float
    current_liabilities: float
    daily_earning_rate: float
    daily_outflow: float
    daily_inflow: float
    net_cash_flow: float
    days_to_bankruptcy: int | None
    bankruptcy_date: str


def span_days(first: datetime, last: datetime) -> int:
    """Whole days between two timestamps, rounded up, at least 1."""
    seconds = (as_utc(last) - as_utc(first)).total_seconds()
    return max(1, math.ceil(seconds / SECONDS_PER_DAY))


def format_day(value: datetime | None) -> str:
    return as_utc(value).date().isoformat() if value else "N/A"


def analyze_withdrawal_pattern(withdrawals: Sequence[DatedAmount]) -> WithdrawalForecast:
    """
    Averages and a growth-adjusted 30 day projection of completed withdrawals.

    Growth compares the daily average of the later half of withdrawals with
    the earlier half.
    """
    if not withdrawals:
        return WithdrawalForecast()

    ordered = sorted(withdrawals, key=lambda w: as_utc(w.created_at))
    first, last = ordered[0].created_at, ordered[-1].created_at
    days = span_days(first, last)

    total = sum(w.amount for w in ordered)
    daily = total / days

    midpoint = len(ordered) // 2
    first_half, second_half = ordered[:midpoint], ordered[midpoint:]

    def half_daily(items: Sequence[DatedAmount]) -> float:
        if not items:
            return 0.0
        return sum(w.amount for w in items) / span_days(items[0].created_at, items[-1].created_at)

    first_daily = half_daily(first_half)
    second_daily = half_daily(second_half)
    growth = ((second_daily - first_daily) / first_daily) * 100 if first_daily > 0 else 0.0

    return WithdrawalForecast(
        daily_average=daily,
        weekly_average=daily * 7,
        monthly_average=daily * 30,
        projected_30_days=daily * 30,
        projected_30_days_with_growth=daily * 30 * (1 + growth / 100),
        growth_rate=growth,
        analysis_period=f"{format_day(first)} to {format_day(last)} ({days} days)",
    )


def report_day_key(value: datetime) -> str:
    """Calendar day (YYYY-MM-DD) in the reporting timezone."""
    shifted = as_utc(value) + timedelta(hours=REPORT_TIMEZONE_OFFSET_HOURS)
    return shifted.date().isoformat()


def build_daily_net_series(
    withdrawals: Iterable[DatedAmount],
    fees: Iterable[DatedAmount],
    refunds: Iterable[DatedAmount],
) -> list[DayNet]:
    """Daily net outflow (withdrawals + fees - refunds), oldest day first."""
    buckets: dict[str, float] = {}
    for items, sign in ((withdrawals, 1), (fees, 1), (refunds, -1)):
        for item in items:
            key = report_day_key(item.created_at)
            buckets[key] = buckets.get(key, 0.0) + sign * item.amount
    return [DayNet(day, net) for day, net in sorted(buckets.items())]


def last_n_days(series: Sequence[DayNet], n: int) -> list[DayNet]:
    """The last n buckets of a series."""
    return list(series[max(0, len(series) - n):])


def percentile(values: Iterable[float], p: float) -> float:
    """Nearest-rank-down percentile: sorted[floor(p * (n - 1))]."""
    ordered = sorted(values)
    if not ordered:
        return 0.0
    idx = min(len(ordered) - 1, max(0, math.floor(p * (len(ordered) - 1))))
    return ordered[idx]


def robust_daily_growth_percent(series: Sequence[DayNet]) -> float:
    """
    Daily compounded growth implied by last week vs the week before.

    Uses the last 14 buckets; fewer than 8 gives 0. Weekly growth is clamped
    to plus or minus the report clamp before converting to a daily rate.
    """
    tail = last_n_days(series, 14)
    if len(tail) < 8:
        return 0.0

    first_avg = sum(d.net for d in tail[:7]) / 7
    later = tail[7:]
    last_avg = sum(d.net for d in later) / len(later)
    if first_avg <= 0:
        return 0.0

    clamp = float(REPORT_GROWTH_CLAMP)
    weekly = max(-clamp, min(clamp, (last_avg - first_avg) / first_avg))
    daily = ((1 + weekly) ** (1 / 7) - 1) * 100
    return daily if math.isfinite(daily) else 0.0


def forecast_next_days(
    baseline_daily: float,
    growth_rate_percent: float,
    days: int,
    now: datetime | None = None,
) -> list[DayProjection]:
    """Project baseline * (1 + g)^i for the next `days` reporting days."""
    today = as_utc(now or utc_now()) + timedelta(hours=REPORT_TIMEZONE_OFFSET_HOURS)
    start = today.date()
    g = growth_rate_percent / 100

    out: list[DayProjection] = []
    for i in range(1, days + 1):
        projected = baseline_daily * (1 + g) ** i
        out.append(
            DayProjection(
                day=(start + timedelta(days=i)).isoformat(),
                projected=projected if math.isfinite(projected) else 0.0,
            )
        )
    return out


def analyze_growth_patterns(
    signups: Sequence[datetime],
    stakes: Sequence[DatedAmount],
    deposits: Sequence[DatedAmount],
    current_staking: float,
) -> GrowthAnalysis:
    """
    Growth rates of users, stakes and deposits.

    User growth is compounded from a single initial user over the signup
    span. Staking growth is the average daily amount staked relative to what
    is currently on stake.
    """
    if not signups or not stakes:
        return GrowthAnalysis()

    signups = sorted(as_utc(s) for s in signups)
    days = span_days(signups[0], signups[-1])
    user_growth = ((len(signups) / 1) ** (1 / days) - 1) * 100

    ordered_stakes = sorted(stakes, key=lambda s: as_utc(s.created_at))
    stake_days = span_days(ordered_stakes[0].created_at, ordered_stakes[-1].created_at)
    total_staked = sum(s.amount for s in ordered_stakes)
    staking_growth = (
        (total_staked / stake_days) / current_staking * 100 if current_staking > 0 else 0.0
    )

    deposit_growth = 0.0
    if deposits:
        ordered = sorted(deposits, key=lambda d: as_utc(d.created_at))
        total = sum(d.amount for d in ordered)
        deposit_days = span_days(ordered[0].created_at, ordered[-1].created_at)
        deposit_growth = (total / deposit_days) / total * 100 if total > 0 else 0.0

    return GrowthAnalysis(
        user_growth_rate=user_growth,
        staking_growth_rate=staking_growth,
        deposit_growth_rate=deposit_growth,
        avg_stake_per_user=total_staked / len(signups),
        days_analyzed=days,
    )


def project_future_staking(growth: GrowthAnalysis, current_staking: float) -> FutureProjections:
    """Linear 1/3/6 month projections, never below the current level."""
    daily_staking = growth.staking_growth_rate / 100 * current_staking
    current_users = (
        current_staking / growth.avg_stake_per_user if growth.avg_stake_per_user > 0 else 1.0
    )
    daily_users = growth.user_growth_rate / 100 * current_users

    def project(current: float, per_day: float, days: int) -> float:
        return max(current, current + per_day * days)

    return FutureProjections(
        staking_1_month=project(current_staking, daily_staking, 30),
        staking_3_months=project(current_staking, daily_staking, 90),
        staking_6_months=project(current_staking, daily_staking, 180),
        users_1_month=project(current_users, daily_users, 30),
        users_3_months=project(current_users, daily_users, 90),
        users_6_months=project(current_users, daily_users, 180),
    )


def analyze_bankruptcy_risk(
    deposits: Sequence[DatedAmount],
    withdrawals: Sequence[DatedAmount],
    remaining_cap_total: float,
    forecast: WithdrawalForecast,
    open_stakes: Iterable[OpenStake],
    growth: GrowthAnalysis,
    now: datetime | None = None,
) -> BankruptcyAnalysis:
    """
    Days until deposits on hand run out at the current cash flow.

    A non-negative net flow projects no bankruptcy; non-positive assets with
    a negative flow are reported as immediate.
    """
    total_deposits = sum(d.amount for d in deposits)
    assets = total_deposits - sum(w.amount for w in withdrawals)

    earning_rate = 0.0
    for stake in open_stakes:
        remaining = max(0.0, stake.max_earning - stake.total_earned)
        earning_rate += min(stake.amount * stake.daily_roi / 100, remaining)

    inflow = 0.0
    if deposits:
        ordered = sorted(deposits, key=lambda d: as_utc(d.created_at))
        inflow = total_deposits / span_days(ordered[0].created_at, ordered[-1].created_at)
        if growth.deposit_growth_rate > 0:
            inflow *= 1 + growth.deposit_growth_rate / 100

    outflow = forecast.daily_average
    net = inflow - outflow

    if net >= 0:
        days, label = None, "Not projected (positive cash flow)"
    elif assets > 0:
        days = math.ceil(-assets / net)
        label = format_day(as_utc(now or utc_now()) + timedelta(days=days))
    else:
        days, label = 0, "Immediate"

    return BankruptcyAnalysis(
        current_assets=assets,
        current_liabilities=remaining_cap_total,
        daily_earning_rate=earning_rate,
        daily_outflow=outflow,
        daily_inflow=inflow,
        net_cash_flow=net,
        days_to_bankruptcy=days,
        bankruptcy_date=label,
    )
