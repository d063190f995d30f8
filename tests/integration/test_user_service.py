"""Integration tests for user registration and sponsor linking."""

from decimal import Decimal

import pytest
from sqlalchemy import select

from app.models import InvitedMember
from app.services.user.user_service import INVITE_CODE_LENGTH, UserService
from app.services.wallet.wallet_service import WalletService
from app.utils.exceptions import BadRequestError, ConflictError, NotFoundError


class TestRegisterUser:
    """Registration."""

    @pytest.mark.asyncio
    async def test_register_creates_wallet(self, session):
        """New users get an invite code and an empty wallet."""
        user = await UserService(session).register_user("  Jane@Example.com ", name="Jane")

        assert user.email == "jane@example.com"
        assert len(user.invite_code) == INVITE_CODE_LENGTH
        assert user.role == "user"

        wallet = await WalletService(session).get_wallet_balance(user.id)
        assert wallet.balance == Decimal("0")

    @pytest.mark.asyncio
    async def test_register_under_sponsor(self, session, factory):
        """An invite code links the new user to the sponsor."""
        sponsor = await factory.user()

        user = await UserService(session).register_user(
            "john@example.com", name="John Smith", sponsor_invite_code=sponsor.invite_code
        )

        edge = (
            await factory.session.execute(
                select(InvitedMember).where(InvitedMember.user_id == user.id)
            )
        ).scalar_one()
        assert edge.sponsor_id == sponsor.id
        assert edge.first_name == "John"
        assert edge.last_name == "Smith"
        assert edge.email == "john@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, session, factory):
        """Emails are unique regardless of case."""
        service = UserService(session)
        await service.register_user("dup@example.com")

        with pytest.raises(ConflictError, match="Email already registered"):
            await service.register_user("DUP@example.com")

    @pytest.mark.asyncio
    async def test_unknown_invite_code_rejected(self, session):
        """Unknown invite codes fail the registration."""
        with pytest.raises(NotFoundError, match="Invalid invite code"):
            await UserService(session).register_user(
                "lost@example.com", sponsor_invite_code="NOSUCHCODE"
            )


class TestSetSponsor:
    """Linking existing users."""

    @pytest.mark.asyncio
    async def test_set_sponsor(self, session, factory):
        """A user without a sponsor can be attached to one."""
        sponsor = await factory.user()
        user = await factory.user()

        edge = await UserService(session).set_sponsor(user.id, sponsor.invite_code)

        assert edge.sponsor_id == sponsor.id
        assert edge.user_id == user.id

    @pytest.mark.asyncio
    async def test_self_invite_rejected(self, session, factory):
        """Users cannot sponsor themselves."""
        user = await factory.user()

        with pytest.raises(BadRequestError, match="referral loop"):
            await UserService(session).set_sponsor(user.id, user.invite_code)

    @pytest.mark.asyncio
    async def test_loop_rejected(self, session, factory):
        """Linking a user under their own downline is rejected."""
        top = await factory.user()
        middle = await factory.user(sponsor=top)
        bottom = await factory.user(sponsor=middle)

        with pytest.raises(BadRequestError, match="referral loop"):
            await UserService(session).set_sponsor(top.id, bottom.invite_code)

    @pytest.mark.asyncio
    async def test_second_sponsor_rejected(self, session, factory):
        """The sponsor edge is set once."""
        first = await factory.user()
        second = await factory.user()
        user = await factory.user(sponsor=first)

        with pytest.raises(BadRequestError, match="already has a sponsor"):
            await UserService(session).set_sponsor(user.id, second.invite_code)
