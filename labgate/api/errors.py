"""Shared error helpers for API responses."""

from __future__ import annotations

from typing import NoReturn

from fastapi import HTTPException


def raise_http_error(code: str, message: str, status_code: int) -> NoReturn:
    """Raise an HTTPException with a structured error payload.

    Args:
        code: Stable error code string.
        message: Human-readable error message.
        status_code: HTTP status to return.
    """
    raise HTTPException(
        status_code=status_code,
        detail={"error": {"code": code, "message": message, "details": None}},
    )
