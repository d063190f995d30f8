"""Promotion services."""

from app.services.promotion.promotion_service import (
    PromotionService,
    PromotionStatus,
    TeamActivationStats,
)


__all__ = ["PromotionService", "PromotionStatus", "TeamActivationStats"]
