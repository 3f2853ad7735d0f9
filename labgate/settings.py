"""Centralized environment configuration for the labgate server.

All environment variables are read through this module using the LABGATE_
prefix for consistency. Proxy variables keep their conventional unprefixed
names since they are shared with every other HTTP tool on the host.

Usage:
    from labgate.settings import settings

    port = settings.port()
    max_sessions = settings.max_sessions()
"""

from __future__ import annotations

import os


def _get(name: str, default: str = "") -> str:
    """Get an environment variable value."""
    return os.environ.get(name, "").strip() or default


def _get_int(name: str, default: int = 0) -> int:
    """Get an integer environment variable."""
    value = os.environ.get(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_any(*names: str) -> str:
    """Return the first non-empty value among several variable names."""
    for name in names:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return ""


class Settings:
    """Centralized settings for the labgate server.

    Environment variables use the LABGATE_ prefix.
    """

    # -------------------------------------------------------------------------
    # Server Settings
    # -------------------------------------------------------------------------

    @staticmethod
    def host() -> str:
        """Host to bind the HTTP server to.

        Env: LABGATE_HOST (default: 0.0.0.0)
        """
        return _get("LABGATE_HOST", default="0.0.0.0")

    @staticmethod
    def port() -> int:
        """Port to bind the HTTP server to.

        Env: LABGATE_PORT (default: 3002)
        """
        return _get_int("LABGATE_PORT", default=3002)

    # -------------------------------------------------------------------------
    # Logging Settings
    # -------------------------------------------------------------------------

    @staticmethod
    def log_level() -> str:
        """Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).

        Env: LABGATE_LOG_LEVEL (default: INFO)
        """
        return _get("LABGATE_LOG_LEVEL", default="INFO").upper()

    @staticmethod
    def log_format() -> str:
        """Log format: "console" for dev-friendly, "json" for structured.

        Env: LABGATE_LOG_FORMAT (default: console)
        """
        return _get("LABGATE_LOG_FORMAT", default="console").lower()

    # -------------------------------------------------------------------------
    # Session Settings
    # -------------------------------------------------------------------------

    @staticmethod
    def max_sessions() -> int:
        """Soft cap on registered sessions before the oldest are evicted.

        Env: LABGATE_MAX_SESSIONS (default: 1000)
        """
        return _get_int("LABGATE_MAX_SESSIONS", default=1000)

    @staticmethod
    def session_timeout_minutes() -> int:
        """Minutes of inactivity after which a session expires.

        Env: LABGATE_SESSION_TIMEOUT_MINUTES (default: 60)
        """
        return _get_int("LABGATE_SESSION_TIMEOUT_MINUTES", default=60)

    @staticmethod
    def sweep_interval_seconds() -> int:
        """Seconds between background sweeps of expired sessions.

        Env: LABGATE_SWEEP_INTERVAL_SECONDS (default: 300)
        """
        return _get_int("LABGATE_SWEEP_INTERVAL_SECONDS", default=300)

    # -------------------------------------------------------------------------
    # Outbound API Settings
    # -------------------------------------------------------------------------

    @staticmethod
    def request_timeout_seconds() -> float:
        """Timeout applied to each outbound GitLab API call.

        Env: LABGATE_REQUEST_TIMEOUT_SECONDS (default: 30)
        """
        return float(_get_int("LABGATE_REQUEST_TIMEOUT_SECONDS", default=30))

    @staticmethod
    def http_proxy() -> str:
        """Proxy used for plain HTTP targets.

        Env: HTTP_PROXY or http_proxy (no prefix - host-wide convention)
        """
        return _get_any("HTTP_PROXY", "http_proxy")

    @staticmethod
    def https_proxy() -> str:
        """Proxy used for HTTPS targets.

        Env: HTTPS_PROXY or https_proxy (no prefix - host-wide convention)
        """
        return _get_any("HTTPS_PROXY", "https_proxy")


# Singleton instance for convenient imports
settings = Settings()
