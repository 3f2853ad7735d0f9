"""Top-level API router wiring."""

from __future__ import annotations

from fastapi import APIRouter

from labgate.api import health, sessions, streams

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(sessions.router)
api_router.include_router(streams.router)
