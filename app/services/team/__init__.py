"""Referral tree services."""

from app.services.team.leaderboard_service import Leaderboard, LeaderboardService
from app.services.team.team_service import (
    SphereImage,
    TeamMember,
    TeamMembersPage,
    TeamService,
)


__all__ = [
    "Leaderboard",
    "LeaderboardService",
    "SphereImage",
    "TeamMember",
    "TeamMembersPage",
    "TeamService",
]
