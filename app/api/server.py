"""
Procedure API server.

Serves POST /rpc/<procedure> and GET /health on aiohttp. Caller identity
comes from the X-User-Id header (set by the authenticating gateway);
admin procedures require the X-Admin-Token header.
"""

import json
import secrets

from aiohttp import web
from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api import procedures  # noqa: F401
from app.api.middlewares import access_log_middleware, error_middleware
from app.api.registry import PROCEDURES, Procedure, ProcedureContext
from app.api.serializers import jsonable
from app.config.database import async_session_maker
from app.config.settings import settings
from app.repositories.user_repository import UserRepository
from app.utils.exceptions import BadRequestError, NotFoundError, UnauthorizedError


USER_ID_HEADER = "X-User-Id"
ADMIN_TOKEN_HEADER = "X-Admin-Token"

SESSION_MAKER_KEY = web.AppKey("session_maker", async_sessionmaker)
ADMIN_TOKEN_KEY = web.AppKey("admin_token", str)


def _check_admin(request: web.Request, procedure: Procedure) -> None:
    expected = request.app[ADMIN_TOKEN_KEY]
    provided = request.headers.get(ADMIN_TOKEN_HEADER, "")
    if not expected or not secrets.compare_digest(provided, expected):
        logger.warning(f"Rejected admin call to {procedure.name}")
        raise UnauthorizedError("Admin token required")


def _caller_id(request: web.Request) -> int:
    raw = request.headers.get(USER_ID_HEADER, "").strip()
    if not raw:
        raise UnauthorizedError("Authentication required")
    try:
        user_id = int(raw)
    except ValueError:
        raise UnauthorizedError("Invalid user id") from None
    if user_id <= 0:
        raise UnauthorizedError("Invalid user id")
    return user_id


async def _read_body(request: web.Request) -> dict:
    if not request.can_read_body:
        return {}
    raw = await request.text()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except json.JSONDecodeError:
        raise BadRequestError("Request body must be valid JSON") from None
    if not isinstance(body, dict):
        raise BadRequestError("Request body must be a JSON object")
    return body


async def rpc_handler(request: web.Request) -> web.Response:
    """Dispatch one procedure call."""
    name = request.match_info["name"]
    procedure = PROCEDURES.get(name)
    if procedure is None:
        raise NotFoundError(f"Unknown procedure: {name}")

    user_id = None
    if procedure.admin:
        _check_admin(request, procedure)
    else:
        user_id = _caller_id(request)

    payload = procedure.input_model.model_validate(await _read_body(request))

    session_maker: async_sessionmaker[AsyncSession] = request.app[SESSION_MAKER_KEY]
    async with session_maker() as session:
        if user_id is not None and await UserRepository(session).get_by_id(user_id) is None:
            raise UnauthorizedError("User not found")
        result = await procedure.handler(ProcedureContext(session=session, user_id=user_id), payload)
        body = {"result": jsonable(result)}

    return web.json_response(body)


async def health_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint.

    Returns:
        JSON response with database status
    """
    session_maker = request.app[SESSION_MAKER_KEY]
    try:
        async with session_maker() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return web.json_response(
            {"status": "unhealthy", "database": False, "error": str(e)},
            status=503,
        )
    return web.json_response({"status": "healthy", "database": True})


def create_app(
    session_maker: async_sessionmaker[AsyncSession] | None = None,
    admin_token: str | None = None,
) -> web.Application:
    """
    Build the API application.

    Args:
        session_maker: Session factory (defaults to the configured database)
        admin_token: Token for admin procedures (defaults to settings)

    Returns:
        aiohttp application
    """
    app = web.Application(middlewares=[error_middleware, access_log_middleware])
    app[SESSION_MAKER_KEY] = session_maker or async_session_maker
    app[ADMIN_TOKEN_KEY] = settings.admin_api_token if admin_token is None else admin_token

    app.router.add_get("/health", health_handler)
    app.router.add_post("/rpc/{name}", rpc_handler)
    return app
