"""
PromotionRegistration repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.promotion_registration import PromotionRegistration
from app.repositories.base import BaseRepository


class PromotionRegistrationRepository(BaseRepository[PromotionRegistration]):
    """Repository for promotion registrations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(PromotionRegistration, session)

    async def get_by_user(self, user_id: int) -> PromotionRegistration | None:
        """Registration of a user, if any."""
        return await self.get_by(user_id=user_id)
