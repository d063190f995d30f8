"""Staking procedures."""

from app.api.registry import ProcedureContext, procedure
from app.api.schemas import CreateStakeInput, EmptyInput, StakeIdInput
from app.services.staking import StakingService


@procedure("user.getStakingPackages")
async def get_staking_packages(ctx: ProcedureContext, data: EmptyInput):
    return StakingService.get_staking_packages()


@procedure("user.getStakingEntries")
async def get_staking_entries(ctx: ProcedureContext, data: EmptyInput):
    return await StakingService(ctx.session).get_staking_entries(ctx.caller_id)


@procedure("user.createStake", CreateStakeInput)
async def create_stake(ctx: ProcedureContext, data: CreateStakeInput):
    result = await StakingService(ctx.session).create_stake(ctx.caller_id, data.amount)
    bonus = result.sponsor_bonus
    return {
        "success": True,
        "entry": result.entry,
        "sponsor_bonus": {
            "credited": bonus.credited,
            "missed": bonus.missed,
        } if bonus else None,
    }


@procedure("user.requestUnstake", StakeIdInput)
async def request_unstake(ctx: ProcedureContext, data: StakeIdInput):
    entry = await StakingService(ctx.session).request_unstake(ctx.caller_id, data.stake_id)
    return {
        "success": True,
        "message": "Unstake requested. Cooldown period has started.",
        "entry": entry,
    }


@procedure("user.completeUnstake", StakeIdInput)
async def complete_unstake(ctx: ProcedureContext, data: StakeIdInput):
    result = await StakingService(ctx.session).complete_unstake(ctx.caller_id, data.stake_id)
    return {
        "success": True,
        "entry": result.entry,
        "principal_return": result.principal_return,
        "total_earned": result.total_earned,
        "total_withdrawal": result.total_withdrawal,
    }
