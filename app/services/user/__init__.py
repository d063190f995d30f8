"""User services."""

from app.services.user.user_service import UserService, generate_invite_code


__all__ = ["UserService", "generate_invite_code"]
