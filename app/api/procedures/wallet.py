"""Wallet procedures."""

from app.api.registry import ProcedureContext, procedure
from app.api.schemas import EmptyInput, RequestWithdrawalInput, TransactionsInput
from app.services.wallet import WalletService, WithdrawalService


@procedure("user.getWalletBalance")
async def get_wallet_balance(ctx: ProcedureContext, data: EmptyInput):
    return await WalletService(ctx.session).get_wallet_balance(ctx.caller_id)


@procedure("user.getTransactions", TransactionsInput)
async def get_transactions(ctx: ProcedureContext, data: TransactionsInput):
    return await WalletService(ctx.session).get_transactions(ctx.caller_id, data.limit)


@procedure("user.getWithdrawalSettings")
async def get_withdrawal_settings(ctx: ProcedureContext, data: EmptyInput):
    return WithdrawalService.get_withdrawal_settings()


@procedure("user.requestWithdrawal", RequestWithdrawalInput)
async def request_withdrawal(ctx: ProcedureContext, data: RequestWithdrawalInput):
    result = await WithdrawalService(ctx.session).request_withdrawal(
        ctx.caller_id, data.amount, data.address, data.request_id
    )
    return {
        "success": True,
        "request_id": result.request_id,
        "total": result.total,
        "fee": result.fee,
        "amount_to_send": result.amount_to_send,
        "status": result.record.status,
        "duplicate": result.duplicate,
    }
