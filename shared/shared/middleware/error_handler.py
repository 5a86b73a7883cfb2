import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def _error_body(detail: Any) -> dict[str, Any]:
    # Controllers raise HTTPException(detail={"code": ..., "message": ...}).
    if isinstance(detail, dict) and "message" in detail:
        return {"code": detail.get("code") or "http_error", "message": detail["message"]}
    if isinstance(detail, str):
        return {"code": detail, "message": detail}
    return {"code": "http_error", "message": str(detail)}


def error_envelope(request: Request, status_code: int, detail: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": _error_body(detail),
            "request_id": getattr(request.state, "request_id", None),
        },
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    response = error_envelope(request, exc.status_code, exc.detail)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def error_envelope_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    try:
        return await call_next(request)
    except StarletteHTTPException as exc:
        return await http_exception_handler(request, exc)
    except Exception:
        logger.exception("Unhandled exception")
        return error_envelope(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            {"code": "internal_error", "message": "An unexpected error occurred"},
        )
