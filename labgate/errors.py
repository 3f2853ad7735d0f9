"""Exception types raised by the session layer."""

from __future__ import annotations

from dataclasses import dataclass


class LabgateError(Exception):
    """Base class for all labgate errors."""


@dataclass(frozen=True)
class FieldIssue:
    """One rejected configuration field."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


class ConfigValidationError(LabgateError, ValueError):
    """Session configuration was missing or malformed.

    Carries every violated field, not just the first one found.
    """

    def __init__(self, issues: list[FieldIssue]) -> None:
        self.issues = list(issues)
        detail = ", ".join(str(issue) for issue in self.issues)
        super().__init__(f"Invalid configuration parameters: {detail}")


class ApiError(LabgateError):
    """The GitLab API answered with a non-success status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"GitLab API error ({status_code}): {body}")


class ReadOnlyViolation(LabgateError, PermissionError):
    """A write operation was attempted on a read-only session."""

    def __init__(self, operation: str, session_id: str) -> None:
        self.operation = operation
        self.session_id = session_id
        super().__init__(
            f"Write operation '{operation}' is not allowed in read-only mode "
            f"for session {session_id}"
        )
