"""FastAPI application entrypoint for the labgate server."""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from starlette.types import Receive, Scope, Send

from labgate.api import api_router
from labgate.errors import ApiError, ConfigValidationError, ReadOnlyViolation
from labgate.log_config import configure_logging
from labgate.mcp_server import build_session_manager
from labgate.middleware import (
    api_error_handler,
    config_validation_handler,
    http_exception_handler,
    read_only_handler,
    request_logging_middleware,
    validation_exception_handler,
)
from labgate.services import SessionServices
from labgate.settings import settings

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    services: SessionServices = app.state.services
    services.start()
    logger.info("Session services started", **services.registry.stats())
    try:
        async with app.state.mcp_manager.run():
            yield
    finally:
        await services.stop()


def create_app(services: SessionServices | None = None) -> FastAPI:
    """Build the app around ``services`` (or fresh ones from the environment)."""
    app = FastAPI(lifespan=lifespan)
    app.state.services = services if services is not None else SessionServices.from_settings()

    app.middleware("http")(request_logging_middleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ConfigValidationError, config_validation_handler)
    app.add_exception_handler(ReadOnlyViolation, read_only_handler)
    app.add_exception_handler(ApiError, api_error_handler)

    app.include_router(api_router)

    # MCP streamable HTTP, resumable through the shared event log.
    manager, event_store = build_session_manager(app.state.services)
    app.state.mcp_manager = manager
    app.state.mcp_event_store = event_store

    async def handle_mcp(scope: Scope, receive: Receive, send: Send) -> None:
        await manager.handle_request(scope, receive, send)

    app.mount("/mcp", handle_mcp)
    return app


def run() -> None:
    """Entry point for the labgate console script."""
    configure_logging()
    uvicorn.run(
        create_app(),
        host=settings.host(),
        port=settings.port(),
        reload=False,
        log_config=None,
    )


if __name__ == "__main__":
    run()
