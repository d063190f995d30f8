"""
aiohttp middlewares for the procedure API.

Maps domain and validation errors onto JSON error bodies with the matching
HTTP status; anything unexpected is logged and returned as a 500.
"""

from collections.abc import Awaitable, Callable

from aiohttp import web
from loguru import logger
from pydantic import ValidationError

from app.utils.exceptions import ErrorCode, HTTP_STATUS_BY_CODE, ProcedureError


def error_response(code: ErrorCode, message: str, **extra) -> web.Response:
    """JSON error body with the status mapped from the code."""
    body = {"error": {"code": code.value, "message": message, **extra}}
    return web.json_response(body, status=HTTP_STATUS_BY_CODE[code])


def _validation_message(exc: ValidationError) -> tuple[str, list[dict]]:
    issues = [
        {
            "path": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    first = issues[0] if issues else {"path": "", "message": "Invalid input"}
    message = f"{first['path']}: {first['message']}" if first["path"] else first["message"]
    return message, issues


@web.middleware
async def error_middleware(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    """Global error handler."""
    try:
        return await handler(request)
    except ProcedureError as e:
        return error_response(e.code, e.message)
    except ValidationError as e:
        message, issues = _validation_message(e)
        return error_response(ErrorCode.BAD_REQUEST, message, issues=issues)
    except web.HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unhandled exception in {request.method} {request.path}: {e}")
        return error_response(ErrorCode.INTERNAL_SERVER_ERROR, "Internal server error")


@web.middleware
async def access_log_middleware(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    """Debug-level request log."""
    response = await handler(request)
    logger.debug(f"{request.method} {request.path} -> {response.status}")
    return response
