"""Log redaction helpers.

Session credentials travel through request URLs, headers and config dumps, so
every structured log event passes through a redactor before rendering.

This is deterministic key-based redaction plus a couple of string rules (not PII detection).
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

REDACTED = "[REDACTED]"

_SENSITIVE_KEYWORDS: tuple[str, ...] = (
    "authorization",
    "private-token",
    "access_token",
    "refresh_token",
    "token",
    "secret",
    "password",
    "cookie",
)

# Keys that contain a sensitive keyword but only ever carry harmless values.
_ALLOWED_KEYS: frozenset[str] = frozenset({"has_token"})

_STRING_RULES: tuple[re.Pattern[str], ...] = (
    re.compile(r"Bearer\s+\S+"),
    re.compile(r"(access_token|private_token)=[^&\s]+"),
)


def redact_secret(text: str, secret: str | None) -> str:
    """Replace every occurrence of ``secret`` in ``text``."""
    if not secret:
        return text
    return text.replace(secret, REDACTED)


def _redact(value: Any, *, replacement: str) -> Any:
    if isinstance(value, str):
        for rule in _STRING_RULES:
            value = rule.sub(
                lambda m: f"{m.group(1)}={replacement}" if m.lastindex else replacement,
                value,
            )
        return value
    if isinstance(value, (list, tuple)):
        return [_redact(v, replacement=replacement) for v in value]
    if isinstance(value, dict):
        out: dict[Any, Any] = {}
        for k, v in value.items():
            key_str = str(k).lower()
            if key_str not in _ALLOWED_KEYS and any(
                word in key_str for word in _SENSITIVE_KEYWORDS
            ):
                out[k] = replacement
                continue
            out[k] = _redact(v, replacement=replacement)
        return out
    return value


def make_log_redactor(*, replacement: str = REDACTED) -> Callable[[Any, str, dict], dict]:
    """Create a structlog processor that redacts secrets from event_dict."""

    def _processor(logger: Any, name: str, event_dict: dict) -> dict:
        return _redact(event_dict, replacement=replacement)

    return _processor
