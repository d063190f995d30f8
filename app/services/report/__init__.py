"""Staking report and forecast analytics."""

from app.services.report.report_service import StakingReport, StakingReportService


__all__ = ["StakingReport", "StakingReportService"]
