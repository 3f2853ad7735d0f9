"""Health endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from labgate import __version__
from labgate.api.deps import get_services
from labgate.api.schemas import HealthResponse
from labgate.services import SessionServices

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health(services: SessionServices = Depends(get_services)) -> HealthResponse:
    """Health check endpoint with session diagnostics."""
    return HealthResponse(ok=True, version=__version__, **services.stats())
