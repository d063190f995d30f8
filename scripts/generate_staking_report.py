#!/usr/bin/env python3
"""
Generate the staking report.

Prints the platform totals, the withdrawal forecast, cash needs and the
bankruptcy projection. Users listed in REPORT_EXCLUDED_USER_IDS are left
out. Exits with status 1 if anything fails.

Usage:
    python scripts/generate_staking_report.py
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from loguru import logger

from app.config.database import async_engine, async_session_maker
from app.config.settings import settings
from app.services.report import StakingReport, StakingReportService
from app.utils.formatters import format_usdt

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO", format="{message}")


def log_report(report: StakingReport) -> None:
    """Write the report to the log, section by section."""
    logger.info("=" * 60)
    logger.info("STAKING REPORT")
    logger.info("=" * 60)
    logger.info(f"Users: {report.users_count} ({report.users_with_stakes} with stakes)")
    logger.info(
        f"Stakes: {report.active_stakes} active, {report.unstaking_stakes} unstaking, "
        f"{report.completed_stakes} completed"
    )
    logger.info(f"On stake: {format_usdt(report.total_on_stake)}")
    logger.info(f"  regular: {format_usdt(report.total_on_stake_regular)}")
    logger.info(f"  voucher: {format_usdt(report.total_on_stake_voucher)}")
    logger.info(f"Earned so far: {format_usdt(report.total_earnings)}")
    logger.info(f"Remaining cap: {format_usdt(report.total_remaining_cap)}")
    logger.info(f"Team earnings: {format_usdt(report.total_team_earnings)}")
    logger.info(f"Direct bonuses: {format_usdt(report.total_direct_bonuses)}")
    logger.info(f"Total given: {format_usdt(report.total_given)}")
    logger.info(
        f"Withdrawals: {format_usdt(report.total_withdrawals)} "
        f"(pending {format_usdt(report.total_pending_withdrawals)})"
    )
    logger.info(
        f"Vouchers: {format_usdt(report.total_voucher_value)} issued, "
        f"{format_usdt(report.total_voucher_value_active)} active, "
        f"{format_usdt(report.total_voucher_value_used)} used"
    )

    if report.stakes_by_package:
        logger.info("-" * 60)
        logger.info("By package:")
        for name, bucket in report.stakes_by_package.items():
            logger.info(
                f"  {name}: {bucket.count} stakes, {format_usdt(bucket.total_amount)} staked, "
                f"{format_usdt(bucket.total_remaining_cap)} cap left"
            )

    forecast = report.withdrawal_forecast
    logger.info("-" * 60)
    logger.info(f"Withdrawals ({forecast.analysis_period})")
    logger.info(f"  daily avg: {forecast.daily_average:.2f}, growth {forecast.growth_rate:.2f}%")
    logger.info(
        f"  max day 30d: {forecast.max_daily_last_30_days:.2f}, "
        f"p90 30d: {forecast.p90_daily_last_30_days:.2f}, "
        f"max day 90d: {forecast.max_daily_last_90_days:.2f}"
    )
    logger.info(f"  robust daily growth: {report.daily_growth_percent:.3f}%")
    for need in report.cash_needs:
        logger.info(f"  cash for {need.days}d: base {need.base:.2f}, stress {need.stress:.2f}")

    if report.projections:
        logger.info("-" * 60)
        logger.info(
            f"Staking in 1/3/6 months: {report.projections.staking_1_month:.2f} / "
            f"{report.projections.staking_3_months:.2f} / "
            f"{report.projections.staking_6_months:.2f}"
        )

    if report.bankruptcy:
        risk = report.bankruptcy
        logger.info("-" * 60)
        logger.info(f"Assets: {risk.current_assets:.2f}, liabilities: {risk.current_liabilities:.2f}")
        logger.info(
            f"Daily in/out: {risk.daily_inflow:.2f} / {risk.daily_outflow:.2f} "
            f"(net {risk.net_cash_flow:.2f})"
        )
        logger.info(f"Bankruptcy: {risk.bankruptcy_date}")
    logger.info("=" * 60)


async def main() -> None:
    excluded = settings.get_report_excluded_user_ids()
    if excluded:
        logger.info(f"Excluding user IDs: {excluded}")

    try:
        async with async_session_maker() as session:
            report = await StakingReportService(session).generate(excluded_user_ids=excluded)
    finally:
        await async_engine.dispose()

    log_report(report)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except Exception:
        logger.exception("Staking report failed")
        sys.exit(1)
