"""Team and leaderboard procedures."""

from app.api.registry import ProcedureContext, procedure
from app.api.schemas import EmptyInput, LeaderboardInput, SphereImagesInput, TeamMembersInput
from app.services.team import LeaderboardService, TeamService


@procedure("user.getTeamMembers", TeamMembersInput)
async def get_team_members(ctx: ProcedureContext, data: TeamMembersInput):
    return await TeamService(ctx.session).get_team_members(
        ctx.caller_id, level=data.level, page=data.page, limit=data.limit
    )


@procedure("user.getTeamStats")
async def get_team_stats(ctx: ProcedureContext, data: EmptyInput):
    counts = await TeamService(ctx.session).get_team_stats(ctx.caller_id)
    return {
        "levels": [{"level": level, "count": count} for level, count in counts.items()],
        "total": sum(counts.values()),
    }


@procedure("user.getTeamSphereImages", SphereImagesInput)
async def get_team_sphere_images(ctx: ProcedureContext, data: SphereImagesInput):
    return await TeamService(ctx.session).get_team_sphere_images(
        ctx.caller_id, max_images=data.max_images, max_levels=data.max_levels
    )


@procedure("user.getInviteLeaderboard", LeaderboardInput)
async def get_invite_leaderboard(ctx: ProcedureContext, data: LeaderboardInput):
    return await LeaderboardService(ctx.session).get_invite_leaderboard(
        ctx.caller_id,
        limit=data.limit,
        min_stake=data.min_stake,
        min_package_id=data.min_package_id,
    )
