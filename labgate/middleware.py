"""HTTP middleware and exception handlers."""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from labgate.errors import ApiError, ConfigValidationError, ReadOnlyViolation

logger = structlog.get_logger(__name__)


def _error(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message, "details": details}},
    )


async def request_logging_middleware(request: Request, call_next):
    request_id = str(uuid.uuid4())
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )
    start_time = time.monotonic()
    logger.info("Request started")
    try:
        response = await call_next(request)
    except Exception:
        duration_ms = (time.monotonic() - start_time) * 1000
        logger.exception("Request failed", duration_ms=round(duration_ms, 2))
        structlog.contextvars.clear_contextvars()
        raise
    duration_ms = (time.monotonic() - start_time) * 1000
    logger.info(
        "Request completed",
        status_code=response.status_code,
        duration_ms=round(duration_ms, 2),
    )
    structlog.contextvars.clear_contextvars()
    return response


async def http_exception_handler(request: Request, exc: HTTPException):
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        return JSONResponse(status_code=exc.status_code, content=exc.detail)
    code_map = {
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        422: "VALIDATION_ERROR",
        502: "UPSTREAM_ERROR",
    }
    code = code_map.get(exc.status_code, "INTERNAL_ERROR")
    return _error(exc.status_code, code, str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return _error(422, "VALIDATION_ERROR", "Invalid request", exc.errors())


async def config_validation_handler(request: Request, exc: ConfigValidationError):
    details = [{"path": issue.path, "message": issue.message} for issue in exc.issues]
    return _error(422, "VALIDATION_ERROR", str(exc), details)


async def read_only_handler(request: Request, exc: ReadOnlyViolation):
    return _error(403, "FORBIDDEN", str(exc))


async def api_error_handler(request: Request, exc: ApiError):
    return _error(502, "UPSTREAM_ERROR", str(exc), {"status_code": exc.status_code})
