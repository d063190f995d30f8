"""
User registration and sponsor linking.

Identity is resolved upstream; this service only creates the platform rows
(user, wallet, invite edge).
"""

import secrets

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import UserRole
from app.models.invited_member import InvitedMember
from app.models.user import User
from app.repositories.invited_member_repository import InvitedMemberRepository
from app.repositories.user_balance_repository import UserBalanceRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService, transaction
from app.services.team.chain import would_create_loop
from app.utils.exceptions import BadRequestError, ConflictError, NotFoundError


INVITE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITE_CODE_LENGTH = 8


def generate_invite_code() -> str:
    """Random invite code."""
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


class UserService(BaseService):
    """User registration."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user service."""
        super().__init__(session)
        self.user_repo = UserRepository(session)
        self.balance_repo = UserBalanceRepository(session)
        self.invited_repo = InvitedMemberRepository(session)

    @transaction
    async def register_user(
        self,
        email: str,
        name: str | None = None,
        username: str | None = None,
        image: str | None = None,
        sponsor_invite_code: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        role: UserRole = UserRole.USER,
    ) -> User:
        """
        Create a user with an empty wallet, optionally under a sponsor.

        Raises:
            BadRequestError: Empty email
            ConflictError: Email already registered
            NotFoundError: Unknown sponsor invite code
        """
        email = (email or "").strip().lower()
        if not email:
            raise BadRequestError("Email is required")
        if await self.user_repo.get_by_email(email) is not None:
            raise ConflictError("Email already registered")

        sponsor = None
        if sponsor_invite_code:
            sponsor = await self.user_repo.get_by_invite_code(sponsor_invite_code.strip())
            if sponsor is None:
                raise NotFoundError("Invalid invite code")

        invite_code = generate_invite_code()
        while await self.user_repo.exists(invite_code=invite_code):
            invite_code = generate_invite_code()

        user = await self.user_repo.create(
            email=email,
            name=name,
            username=username,
            image=image,
            invite_code=invite_code,
            role=role.value,
        )
        await self.balance_repo.get_or_create(user.id)

        if sponsor is not None:
            await self._link(user, sponsor.id, first_name, last_name)

        self.logger.info(f"User registered: id={user.id}")
        return user

    @transaction
    async def set_sponsor(self, user_id: int, sponsor_invite_code: str) -> InvitedMember:
        """
        Attach an existing user without a sponsor to one.

        Raises:
            NotFoundError: Unknown user or invite code
            BadRequestError: User already has a sponsor, or the link would loop
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        sponsor = await self.user_repo.get_by_invite_code(sponsor_invite_code.strip())
        if sponsor is None:
            raise NotFoundError("Invalid invite code")
        if await self.invited_repo.get_sponsor_id(user_id) is not None:
            raise BadRequestError("User already has a sponsor")

        return await self._link(user, sponsor.id)

    async def _link(
        self,
        user: User,
        sponsor_id: int,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> InvitedMember:
        sponsor_of = await self.invited_repo.get_sponsor_map()
        if would_create_loop(sponsor_of, user.id, sponsor_id):
            raise BadRequestError("Cannot invite yourself or create a referral loop")

        if first_name is None and user.name:
            first_name, _, rest = user.name.partition(" ")
            last_name = last_name or (rest or None)

        edge = await self.invited_repo.create(
            sponsor_id=sponsor_id,
            user_id=user.id,
            first_name=first_name,
            last_name=last_name,
            email=user.email,
        )
        self.logger.info(f"Sponsor linked: user={user.id} sponsor={sponsor_id}")
        return edge
