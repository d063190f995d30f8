"""Voucher procedures."""

from datetime import timedelta

from app.api.registry import ProcedureContext, procedure
from app.api.schemas import (
    CreateVouchersInput,
    GetVouchersInput,
    RedeemVoucherInput,
    UnassignedVouchersInput,
    VoucherIdInput,
)
from app.api.serializers import serialize_voucher
from app.services.voucher import VoucherDraft, VoucherService
from app.utils.datetime_utils import utc_now


@procedure("user.getVouchers", GetVouchersInput)
async def get_vouchers(ctx: ProcedureContext, data: GetVouchersInput):
    listed = await VoucherService(ctx.session).get_vouchers(
        ctx.caller_id, status=data.status, voucher_type=data.type
    )
    return [serialize_voucher(voucher, status) for voucher, status in listed]


@procedure("user.getVoucherById", VoucherIdInput)
async def get_voucher_by_id(ctx: ProcedureContext, data: VoucherIdInput):
    voucher, status = await VoucherService(ctx.session).get_voucher_by_id(
        ctx.caller_id, data.voucher_id
    )
    return serialize_voucher(voucher, status)


@procedure("user.redeemVoucherByCode", RedeemVoucherInput)
async def redeem_voucher_by_code(ctx: ProcedureContext, data: RedeemVoucherInput):
    result = await VoucherService(ctx.session).redeem_voucher_by_code(
        ctx.caller_id, data.code, data.package_id
    )
    return {
        "success": True,
        "message": result.message,
        "credited": result.credited,
        "voucher": result.voucher,
    }


@procedure("user.useVoucherForStake", VoucherIdInput)
async def use_voucher_for_stake(ctx: ProcedureContext, data: VoucherIdInput):
    result = await VoucherService(ctx.session).use_voucher_for_stake(
        ctx.caller_id, data.voucher_id
    )
    return {
        "success": True,
        "message": f"Voucher redeemed for {result.package.name} package",
        "voucher": result.voucher,
        "entry": result.entry,
    }


@procedure("admin.voucher.createVouchers", CreateVouchersInput, admin=True)
async def create_vouchers(ctx: ProcedureContext, data: CreateVouchersInput):
    draft = VoucherDraft(
        value=data.value,
        title=data.title,
        type=data.type,
        badge=data.badge,
        badge_color=data.badge_color,
        description=data.description,
        link_text=data.link_text,
        link_href=data.link_href,
        package_id=data.package_id,
        roi_validity_days=data.roi_validity_days,
        affects_max_cap=data.affects_max_cap,
        requires_real_package=data.requires_real_package,
        is_promotional=data.is_promotional,
        expires_at=(
            utc_now() + timedelta(days=data.expires_in_days)
            if data.expires_in_days else None
        ),
        user_id=data.user_id,
    )
    vouchers = await VoucherService(ctx.session).create_vouchers(draft, data.quantity)
    return {"count": len(vouchers), "vouchers": vouchers}


@procedure("admin.voucher.getUnassignedVouchers", UnassignedVouchersInput, admin=True)
async def get_unassigned_vouchers(ctx: ProcedureContext, data: UnassignedVouchersInput):
    return await VoucherService(ctx.session).get_unassigned_vouchers(data.status)
