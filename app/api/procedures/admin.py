"""Admin procedures: wallet settlement, user registration and job triggers."""

from app.api.registry import ProcedureContext, procedure
from app.api.schemas import (
    CreditDepositInput,
    DistributeDailyInput,
    EmptyInput,
    RegisterUserInput,
    SettleWithdrawalInput,
)
from app.services.distribution import RoiDistributor, TeamEarningsDistributor
from app.services.user import UserService
from app.services.wallet import WalletService, WithdrawalService


@procedure("admin.wallet.creditDeposit", CreditDepositInput, admin=True)
async def credit_deposit(ctx: ProcedureContext, data: CreditDepositInput):
    record = await WalletService(ctx.session).credit_deposit(
        data.user_id, data.amount, data.transaction_hash, data.from_address
    )
    return {"success": True, "transaction": record}


@procedure("admin.wallet.settleWithdrawal", SettleWithdrawalInput, admin=True)
async def settle_withdrawal(ctx: ProcedureContext, data: SettleWithdrawalInput):
    record = await WithdrawalService(ctx.session).settle_withdrawal(
        data.request_id, data.success, data.transaction_hash
    )
    return {"success": True, "transaction": record}


@procedure("admin.user.register", RegisterUserInput, admin=True)
async def register_user(ctx: ProcedureContext, data: RegisterUserInput):
    user = await UserService(ctx.session).register_user(
        email=data.email,
        name=data.name,
        username=data.username,
        image=data.image,
        sponsor_invite_code=data.invite_code,
        first_name=data.first_name,
        last_name=data.last_name,
    )
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "invite_code": user.invite_code,
        "created_at": user.created_at,
    }


@procedure("admin.jobs.distributeDailyEarnings", DistributeDailyInput, admin=True)
async def distribute_daily_earnings(ctx: ProcedureContext, data: DistributeDailyInput):
    summary = await RoiDistributor(ctx.session).distribute(user_id=data.user_id)
    return {
        "total_users": summary.total_users,
        "total_entries": summary.total_entries,
        "total_rewarded": summary.total_rewarded,
        "total_missed": summary.total_missed,
        "failed_users": summary.failed_users,
    }


@procedure("admin.jobs.distributeTeamEarnings", EmptyInput, admin=True)
async def distribute_team_earnings(ctx: ProcedureContext, data: EmptyInput):
    return await TeamEarningsDistributor(ctx.session).distribute()
