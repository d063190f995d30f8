"""
Staking report collector.

Loads the ledger (minus excluded test accounts), aggregates positions,
vouchers and cash flows, and feeds the forecast functions.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import (
    IN_FLIGHT_TRANSACTION_STATUSES,
    StakingStatus,
    TransactionStatus,
    TransactionType,
    VoucherStatus,
    VoucherType,
)
from app.models.transaction_record import TransactionRecord
from app.repositories.staking_entry_repository import StakingEntryRepository
from app.repositories.team_earning_record_repository import TeamEarningRecordRepository
from app.repositories.transaction_record_repository import TransactionRecordRepository
from app.repositories.user_repository import UserRepository
from app.repositories.voucher_repository import VoucherRepository
from app.services.base_service import BaseService
from app.services.report.forecast import (
    BankruptcyAnalysis,
    DatedAmount,
    DayProjection,
    FutureProjections,
    GrowthAnalysis,
    OpenStake,
    WithdrawalForecast,
    analyze_bankruptcy_risk,
    analyze_growth_patterns,
    analyze_withdrawal_pattern,
    build_daily_net_series,
    forecast_next_days,
    last_n_days,
    percentile,
    project_future_staking,
    robust_daily_growth_percent,
)
from app.services.staking.calculator import ZERO, remaining_cap
from app.utils.datetime_utils import as_utc, utc_now


@dataclass
class StakeBucket:
    """Aggregate over a group of staking entries."""

    count: int = 0
    total_amount: Decimal = ZERO
    total_earned: Decimal = ZERO
    total_max_earning: Decimal = ZERO
    total_remaining_cap: Decimal = ZERO

    def add(self, amount: Decimal, earned: Decimal, max_earning: Decimal, remaining: Decimal) -> None:
        self.count += 1
        self.total_amount += amount
        self.total_earned += earned
        self.total_max_earning += max_earning
        self.total_remaining_cap += remaining


@dataclass
class CashNeed:
    """Cash needed over a horizon under base and stress scenarios."""

    days: int
    base: float
    stress: float


@dataclass
class StakingReport:
    """Full report payload."""

    users_count: int = 0
    users_with_stakes: int = 0
    total_on_stake: Decimal = ZERO
    total_on_stake_regular: Decimal = ZERO
    total_on_stake_voucher: Decimal = ZERO
    total_earnings: Decimal = ZERO
    total_max_earning: Decimal = ZERO
    total_remaining_cap: Decimal = ZERO
    total_withdrawals: Decimal = ZERO
    total_pending_withdrawals: Decimal = ZERO
    total_team_earnings: Decimal = ZERO
    total_direct_bonuses: Decimal = ZERO
    total_given: Decimal = ZERO
    active_stakes: int = 0
    unstaking_stakes: int = 0
    completed_stakes: int = 0
    active_voucher_positions: int = 0
    active_regular_positions: int = 0
    total_voucher_value: Decimal = ZERO
    total_voucher_value_active: Decimal = ZERO
    total_voucher_value_used: Decimal = ZERO
    first_stake: datetime | None = None
    last_stake: datetime | None = None
    stakes_by_status: dict[str, StakeBucket] = field(default_factory=dict)
    stakes_by_package: dict[str, StakeBucket] = field(default_factory=dict)
    withdrawal_forecast: WithdrawalForecast = field(default_factory=WithdrawalForecast)
    daily_growth_percent: float = 0.0
    next_30_days: list[DayProjection] = field(default_factory=list)
    cash_needs: list[CashNeed] = field(default_factory=list)
    growth: GrowthAnalysis = field(default_factory=GrowthAnalysis)
    projections: FutureProjections | None = None
    bankruptcy: BankruptcyAnalysis | None = None


def _dated(records: list[TransactionRecord]) -> list[DatedAmount]:
    return [DatedAmount(float(r.amount or 0), as_utc(r.created_at)) for r in records]


class StakingReportService(BaseService):
    """Builds the staking report from database state."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize report service."""
        super().__init__(session)
        self.user_repo = UserRepository(session)
        self.staking_repo = StakingEntryRepository(session)
        self.voucher_repo = VoucherRepository(session)
        self.transaction_repo = TransactionRecordRepository(session)
        self.team_repo = TeamEarningRecordRepository(session)

    async def generate(
        self, excluded_user_ids: list[int] | None = None, now: datetime | None = None
    ) -> StakingReport:
        """
        Collect and analyze everything the report shows.

        Args:
            excluded_user_ids: Test accounts to leave out
            now: Reference time for forecasts and voucher expiry

        Returns:
            Report payload
        """
        excluded = list(excluded_user_ids or [])
        now = as_utc(now or utc_now())
        report = StakingReport()

        signups = await self.user_repo.list_signup_dates(exclude=excluded)
        report.users_count = len(signups)

        stakes = await self.staking_repo.list_all(exclude_user_ids=excluded)
        vouchers = await self.voucher_repo.list_all(exclude_user_ids=excluded)
        voucher_stake_ids = {
            v.applied_to_stake_id
            for v in vouchers
            if v.status == VoucherStatus.USED.value and v.applied_to_stake_id is not None
        }

        self._aggregate_stakes(report, stakes, voucher_stake_ids)
        self._aggregate_vouchers(report, vouchers, now)

        records = await self.transaction_repo.list_by_types(
            [
                TransactionType.DEPOSIT,
                TransactionType.WITHDRAWAL,
                TransactionType.WITHDRAWAL_FEE,
                TransactionType.REFUND,
                TransactionType.REWARD,
            ],
            exclude_user_ids=excluded,
        )
        completed = TransactionStatus.COMPLETED.value

        def pick(kind: TransactionType, statuses: tuple[str, ...] = (completed,)) -> list[TransactionRecord]:
            return [r for r in records if r.type == kind.value and r.status in statuses]

        deposits = pick(TransactionType.DEPOSIT)
        withdrawals = pick(TransactionType.WITHDRAWAL)
        fees = pick(TransactionType.WITHDRAWAL_FEE)
        refunds = pick(TransactionType.REFUND)
        rewards = pick(TransactionType.REWARD)
        in_flight = pick(TransactionType.WITHDRAWAL, tuple(IN_FLIGHT_TRANSACTION_STATUSES))

        def total(items: list[TransactionRecord]) -> Decimal:
            return sum((Decimal(r.amount) for r in items), ZERO)

        report.total_withdrawals = total(withdrawals) + total(fees) - total(refunds)
        report.total_pending_withdrawals = total(in_flight)
        report.total_direct_bonuses = total(rewards)
        report.total_team_earnings = await self.team_repo.get_total(exclude_user_ids=excluded)
        report.total_given = (
            report.total_direct_bonuses + report.total_team_earnings + report.total_earnings
        )

        self._forecast(report, deposits, withdrawals, fees, refunds, signups, stakes, now)

        self.logger.info(
            "Staking report generated",
            users=report.users_count,
            stakes=len(stakes),
            on_stake=str(report.total_on_stake),
        )
        return report

    @staticmethod
    def _aggregate_stakes(report: StakingReport, stakes: list, voucher_stake_ids: set[int]) -> None:
        owners: set[int] = set()

        for stake in stakes:
            owners.add(stake.user_id)
            amount = Decimal(stake.amount or 0)
            earned = Decimal(stake.total_earned or 0)
            max_earning = Decimal(stake.max_earning or 0)
            remaining = remaining_cap(stake)
            created = as_utc(stake.created_at)

            if report.first_stake is None or created < report.first_stake:
                report.first_stake = created
            if report.last_stake is None or created > report.last_stake:
                report.last_stake = created

            report.stakes_by_status.setdefault(stake.status, StakeBucket()).add(
                amount, earned, max_earning, remaining
            )
            report.stakes_by_package.setdefault(stake.package_name or "Unknown", StakeBucket()).add(
                amount, earned, max_earning, remaining
            )

            is_voucher = stake.id in voucher_stake_ids
            if stake.status == StakingStatus.COMPLETED.value:
                report.completed_stakes += 1
            elif stake.status in (StakingStatus.ACTIVE.value, StakingStatus.UNSTAKING.value):
                if stake.status == StakingStatus.ACTIVE.value:
                    report.active_stakes += 1
                    if is_voucher:
                        report.active_voucher_positions += 1
                    else:
                        report.active_regular_positions += 1
                else:
                    report.unstaking_stakes += 1

                report.total_on_stake += amount
                report.total_max_earning += max_earning
                report.total_remaining_cap += remaining
                if is_voucher:
                    report.total_on_stake_voucher += amount
                else:
                    report.total_on_stake_regular += amount

            report.total_earnings += earned

        report.users_with_stakes = len(owners)

    @staticmethod
    def _aggregate_vouchers(report: StakingReport, vouchers: list, now: datetime) -> None:
        for voucher in vouchers:
            if voucher.user_id is None:
                continue
            value = Decimal(voucher.value or 0)
            if voucher.status == VoucherStatus.USED.value and voucher.applied_to_stake_id is not None:
                report.total_voucher_value_used += value
            elif (
                voucher.status == VoucherStatus.ACTIVE.value
                and voucher.type == VoucherType.PACKAGE.value
                and (voucher.expires_at is None or as_utc(voucher.expires_at) > now)
            ):
                report.total_voucher_value_active += value
        report.total_voucher_value = report.total_voucher_value_used + report.total_voucher_value_active

    @staticmethod
    def _forecast(
        report: StakingReport,
        deposits: list[TransactionRecord],
        withdrawals: list[TransactionRecord],
        fees: list[TransactionRecord],
        refunds: list[TransactionRecord],
        signups: list[datetime],
        stakes: list,
        now: datetime,
    ) -> None:
        forecast = analyze_withdrawal_pattern(_dated(withdrawals))

        daily_net = build_daily_net_series(_dated(withdrawals), _dated(fees), _dated(refunds))
        last_90 = last_n_days(daily_net, 90)
        last_30 = last_n_days(daily_net, 30)
        forecast.max_daily_last_90_days = max([0.0, *(d.net for d in last_90)])
        forecast.max_daily_last_30_days = max([0.0, *(d.net for d in last_30)])
        forecast.p90_daily_last_30_days = percentile((d.net for d in last_30), 0.9)

        growth_percent = robust_daily_growth_percent(last_30)
        baseline = forecast.daily_average
        forecast.next_14_days = forecast_next_days(baseline, growth_percent, 14, now=now)
        report.next_30_days = forecast_next_days(baseline, growth_percent, 30, now=now)
        report.daily_growth_percent = growth_percent
        report.withdrawal_forecast = forecast

        p90 = forecast.p90_daily_last_30_days
        report.cash_needs = [
            CashNeed(14, sum(d.projected for d in forecast.next_14_days), p90 * 14),
            CashNeed(30, sum(d.projected for d in report.next_30_days), p90 * 30),
        ]

        current = float(report.total_on_stake)
        stake_amounts = [DatedAmount(float(s.amount or 0), as_utc(s.created_at)) for s in stakes]
        report.growth = analyze_growth_patterns(signups, stake_amounts, _dated(deposits), current)
        report.projections = project_future_staking(report.growth, current)

        open_stakes = [
            OpenStake(
                amount=float(s.amount or 0),
                daily_roi=float(s.daily_roi or 0),
                total_earned=float(s.total_earned or 0),
                max_earning=float(s.max_earning or 0),
            )
            for s in stakes
            if s.status in (StakingStatus.ACTIVE.value, StakingStatus.UNSTAKING.value)
        ]
        report.bankruptcy = analyze_bankruptcy_risk(
            _dated(deposits),
            _dated(withdrawals),
            float(report.total_remaining_cap),
            forecast,
            open_stakes,
            report.growth,
            now=now,
        )
