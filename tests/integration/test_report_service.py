"""Integration tests for the staking report."""

from decimal import Decimal

import pytest

from app.models import (
    StakingStatus,
    TeamEarningRecord,
    TransactionRecord,
    TransactionStatus,
    TransactionType,
    VoucherStatus,
)
from app.services.report import StakingReportService


def record(user, kind: TransactionType, amount: str, status=TransactionStatus.COMPLETED):
    return TransactionRecord(
        user_id=user.id, type=kind.value, status=status.value, amount=Decimal(amount)
    )


async def seed(factory):
    """Two real users, one test account."""
    alice = await factory.user()
    bob = await factory.user()
    tester = await factory.user()

    await factory.stake(alice, package_id=1, total_earned=10)
    await factory.stake(
        alice, package_id=3, total_earned=500, status=StakingStatus.COMPLETED
    )
    position = await factory.stake(bob, package_id=0, amount="30", max_earning=0)
    await factory.voucher(
        user=bob, value=30, status=VoucherStatus.USED, applied_to_stake_id=position.id
    )
    await factory.voucher(user=bob, value=50)
    await factory.stake(tester, package_id=1)

    factory.session.add_all(
        [
            record(alice, TransactionType.DEPOSIT, "1000"),
            record(alice, TransactionType.WITHDRAWAL, "18.80"),
            record(alice, TransactionType.WITHDRAWAL_FEE, "1.20"),
            record(alice, TransactionType.WITHDRAWAL, "40", TransactionStatus.PENDING),
            record(alice, TransactionType.REWARD, "5"),
            record(tester, TransactionType.DEPOSIT, "500"),
            record(tester, TransactionType.WITHDRAWAL, "300"),
            TeamEarningRecord(
                user_id=alice.id, source_user_id=bob.id, level=1, amount=Decimal("2.5")
            ),
        ]
    )
    await factory.session.commit()
    return alice, bob, tester


class TestStakingReport:
    """Report aggregation."""

    @pytest.mark.asyncio
    async def test_empty_database(self, session):
        """An empty ledger gives a zero report with no bankruptcy projection."""
        report = await StakingReportService(session).generate()

        assert report.users_count == 0
        assert report.total_on_stake == Decimal("0")
        assert report.withdrawal_forecast.analysis_period == "No withdrawal data available"
        assert report.bankruptcy.days_to_bankruptcy is None
        assert len(report.next_30_days) == 30

    @pytest.mark.asyncio
    async def test_positions_and_cash_flows(self, session, factory):
        """Totals should reflect positions, vouchers and completed cash flows."""
        _, _, tester = await seed(factory)

        report = await StakingReportService(session).generate(excluded_user_ids=[tester.id])

        assert report.users_count == 2
        assert report.users_with_stakes == 2
        assert report.total_on_stake == Decimal("130")
        assert report.total_on_stake_regular == Decimal("100")
        assert report.total_on_stake_voucher == Decimal("30")
        assert report.active_stakes == 2
        assert report.completed_stakes == 1
        assert report.active_voucher_positions == 1
        assert report.active_regular_positions == 1
        assert report.total_remaining_cap == Decimal("170")
        assert report.total_earnings == Decimal("510")

        assert report.total_withdrawals == Decimal("20")
        assert report.total_pending_withdrawals == Decimal("40")
        assert report.total_direct_bonuses == Decimal("5")
        assert report.total_team_earnings == Decimal("2.5")
        assert report.total_given == Decimal("517.5")

        assert report.total_voucher_value_used == Decimal("30")
        assert report.total_voucher_value_active == Decimal("50")
        assert report.total_voucher_value == Decimal("80")

        assert report.stakes_by_package["Bronze Node"].count == 1
        assert report.stakes_by_status["completed"].total_earned == Decimal("500")

    @pytest.mark.asyncio
    async def test_forecast_sections(self, session, factory):
        """Forecast and solvency sections are filled from the cash flows."""
        _, _, tester = await seed(factory)

        report = await StakingReportService(session).generate(excluded_user_ids=[tester.id])

        forecast = report.withdrawal_forecast
        assert forecast.daily_average == pytest.approx(18.8)
        assert forecast.max_daily_last_30_days == pytest.approx(20.0)
        assert len(forecast.next_14_days) == 14
        assert [need.days for need in report.cash_needs] == [14, 30]

        bankruptcy = report.bankruptcy
        assert bankruptcy.current_assets == pytest.approx(981.2)
        assert bankruptcy.days_to_bankruptcy is None
        assert bankruptcy.bankruptcy_date == "Not projected (positive cash flow)"
        assert report.projections.staking_1_month >= float(report.total_on_stake)

    @pytest.mark.asyncio
    async def test_excluded_accounts_left_out(self, session, factory):
        """Without exclusions the test account shows up."""
        await seed(factory)

        report = await StakingReportService(session).generate()

        assert report.users_count == 3
        assert report.total_on_stake == Decimal("230")
        assert report.total_withdrawals == Decimal("320")
