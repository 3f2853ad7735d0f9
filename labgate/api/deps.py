"""Dependency helpers for API endpoints."""

from __future__ import annotations

from fastapi import Request

from labgate.services import SessionServices


def get_services(request: Request) -> SessionServices:
    """Return the services owned by the running app."""
    return request.app.state.services
