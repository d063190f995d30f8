"""Staking ledger services."""

from app.services.staking.staking_service import (
    StakeResult,
    StakingService,
    UnstakeResult,
)


__all__ = ["StakeResult", "StakingService", "UnstakeResult"]
