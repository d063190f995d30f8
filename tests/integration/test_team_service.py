"""Integration tests for team queries and the invite leaderboard."""

from datetime import timedelta
from decimal import Decimal

import pytest

from app.services.team.leaderboard_service import LeaderboardService
from app.services.team.team_service import TeamService
from app.utils.datetime_utils import utc_now
from app.utils.exceptions import BadRequestError


async def build_tree(factory):
    """root -> a, b; a -> c; c -> d."""
    root = await factory.user(name="Root")
    a = await factory.user(sponsor=root, name="Alice", image="https://cdn.example.com/a.png")
    b = await factory.user(sponsor=root, name="Bob")
    c = await factory.user(sponsor=a, name="Carol", image="https://cdn.example.com/c.png")
    d = await factory.user(sponsor=c, name="Dave", image="https://cdn.example.com/d.png")
    return root, a, b, c, d


class TestTeamMembers:
    """Level listings."""

    @pytest.mark.asyncio
    async def test_members_by_level(self, session, factory):
        """Each level should list exactly its members."""
        root, a, b, c, d = await build_tree(factory)
        service = TeamService(session)

        level1 = await service.get_team_members(root.id, level=1)
        level2 = await service.get_team_members(root.id, level=2)
        level4 = await service.get_team_members(root.id, level=4)

        assert {m.user_id for m in level1.members} == {a.id, b.id}
        assert level1.total == 2
        assert level1.total_pages == 1
        assert [m.user_id for m in level2.members] == [c.id]
        assert level2.members[0].name == "Carol"
        assert level4.members == []
        assert level4.total == 0
        assert level4.total_pages == 0

    @pytest.mark.asyncio
    async def test_members_include_wallet_figures(self, session, factory):
        """Members should carry balance and earnings."""
        root = await factory.user()
        await factory.user(sponsor=root, balance=42)

        result = await TeamService(session).get_team_members(root.id)

        assert result.members[0].balance == Decimal("42")
        assert result.members[0].team_earning == Decimal("0")

    @pytest.mark.asyncio
    async def test_pagination(self, session, factory):
        """Pages should split the level newest first."""
        root = await factory.user()
        invitees = [await factory.user(sponsor=root) for _ in range(3)]
        service = TeamService(session)

        first = await service.get_team_members(root.id, page=1, limit=2)
        second = await service.get_team_members(root.id, page=2, limit=2)

        assert first.total == 3
        assert first.total_pages == 2
        assert [m.user_id for m in first.members] == [invitees[2].id, invitees[1].id]
        assert [m.user_id for m in second.members] == [invitees[0].id]

    @pytest.mark.asyncio
    async def test_level_out_of_range_rejected(self, session, factory):
        """Levels outside 1..10 should be rejected."""
        root = await factory.user()

        with pytest.raises(BadRequestError, match="Level must be between 1 and 10"):
            await TeamService(session).get_team_members(root.id, level=11)

    @pytest.mark.asyncio
    async def test_cyclic_edges_terminate(self, session, factory):
        """A cycle in the invite edges should not repeat members."""
        a = await factory.user()
        b = await factory.user(sponsor=a)
        await factory.link(b, a)

        stats = await TeamService(session).get_team_stats(a.id)

        assert stats[1] == 1
        assert sum(stats.values()) == 1


class TestTeamStats:
    """Per-level counts and sphere avatars."""

    @pytest.mark.asyncio
    async def test_stats_zero_filled(self, session, factory):
        """Stats should cover levels 1..10."""
        root, *_ = await build_tree(factory)

        stats = await TeamService(session).get_team_stats(root.id)

        assert list(stats) == list(range(1, 11))
        assert stats[1] == 2
        assert stats[2] == 1
        assert stats[3] == 1
        assert stats[4] == 0

    @pytest.mark.asyncio
    async def test_sphere_images_breadth_first(self, session, factory):
        """Only members with images, nearest levels first."""
        root, a, b, c, d = await build_tree(factory)
        service = TeamService(session)

        images = await service.get_team_sphere_images(root.id)
        limited = await service.get_team_sphere_images(root.id, max_images=2)
        shallow = await service.get_team_sphere_images(root.id, max_levels=1)

        assert [i.id for i in images] == [a.id, c.id, d.id]
        assert images[0].alt == "Alice"
        assert [i.id for i in limited] == [a.id, c.id]
        assert [i.id for i in shallow] == [a.id]


class TestInviteLeaderboard:
    """Weekly invite ranking."""

    @pytest.mark.asyncio
    async def test_ranks_by_qualifying_invites(self, session, factory):
        """Sponsors with more qualifying invitees rank higher."""
        leader = await factory.user(name="Leader")
        runner_up = await factory.user(name="Runner")
        for _ in range(2):
            invitee = await factory.user(sponsor=leader)
            await factory.stake(invitee, package_id=1)
        invitee = await factory.user(sponsor=runner_up)
        await factory.stake(invitee, package_id=3)
        trial = await factory.user(sponsor=runner_up)
        await factory.stake(trial, package_id=0)

        board = await LeaderboardService(session).get_invite_leaderboard(runner_up.id)

        assert [(r.rank, r.user_id, r.activated_invites) for r in board.top] == [
            (1, leader.id, 2),
            (2, runner_up.id, 1),
        ]
        assert board.top[0].name == "Leader"
        assert board.my_rank == 2
        assert board.my_activated_invites == 1
        assert board.period_start <= board.period_end

    @pytest.mark.asyncio
    async def test_repeat_stakes_count_once(self, session, factory):
        """An invitee counts once however many stakes they make."""
        sponsor = await factory.user()
        invitee = await factory.user(sponsor=sponsor)
        await factory.stake(invitee, package_id=1)
        await factory.stake(invitee, package_id=4)

        board = await LeaderboardService(session).get_invite_leaderboard(sponsor.id)

        assert board.top[0].activated_invites == 1

    @pytest.mark.asyncio
    async def test_stakes_before_window_ignored(self, session, factory):
        """Stakes from earlier weeks do not count."""
        sponsor = await factory.user()
        invitee = await factory.user(sponsor=sponsor)
        await factory.stake(invitee, package_id=1, created_at=utc_now() - timedelta(days=8))

        board = await LeaderboardService(session).get_invite_leaderboard(sponsor.id)

        assert board.top == []
        assert board.my_rank is None
        assert board.my_activated_invites == 0

    @pytest.mark.asyncio
    async def test_limit_validated(self, session, factory):
        """Limits outside 5..100 should be rejected."""
        user = await factory.user()

        with pytest.raises(BadRequestError, match="Limit must be between 5 and 100"):
            await LeaderboardService(session).get_invite_leaderboard(user.id, limit=3)
