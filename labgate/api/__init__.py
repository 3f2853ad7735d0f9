"""API package for session control and stream replay endpoints."""

from __future__ import annotations

from labgate.api.router import api_router

__all__ = ["api_router"]
