"""Promotion procedures."""

from app.api.registry import ProcedureContext, procedure
from app.api.schemas import EmptyInput, RegisterPromotionInput
from app.services.promotion import PromotionService


@procedure("user.registerForPromotion", RegisterPromotionInput)
async def register_for_promotion(ctx: ProcedureContext, data: RegisterPromotionInput):
    registration, created = await PromotionService(ctx.session).register_for_promotion(
        ctx.caller_id, data.promotion_type
    )
    return {
        "success": True,
        "already_registered": not created,
        "promotion_type": registration.promotion_type,
        "registered_at": registration.registered_at,
    }


@procedure("user.checkPromotionStatus")
async def check_promotion_status(ctx: ProcedureContext, data: EmptyInput):
    return await PromotionService(ctx.session).check_promotion_status(ctx.caller_id)


@procedure("user.getPromotionRewards")
async def get_promotion_rewards(ctx: ProcedureContext, data: EmptyInput):
    return PromotionService.get_promotion_rewards()
