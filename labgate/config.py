"""Validation of per-session GitLab configuration."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from labgate.errors import ConfigValidationError, FieldIssue

Toggle = Literal["true", "false"]


class DynamicConfig(BaseModel):
    """Validated, immutable configuration for one session.

    Toggles keep their wire form (``"true"``/``"false"``); use the
    ``*_enabled`` properties for booleans.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    api_url: str
    access_token: str
    project_id: str | None = None
    read_only: Toggle = "false"
    use_wiki: Toggle = "false"
    use_milestone: Toggle = "false"
    use_pipeline: Toggle = "false"

    @field_validator("api_url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        parts = urlsplit(value.strip())
        if not parts.scheme or not parts.netloc:
            raise ValueError("Invalid GitLab API URL")
        return value.strip()

    @field_validator("access_token")
    @classmethod
    def _check_token(cls, value: str) -> str:
        if not value:
            raise ValueError("Access token is required")
        return value

    @property
    def read_only_enabled(self) -> bool:
        return self.read_only == "true"

    @property
    def wiki_enabled(self) -> bool:
        return self.use_wiki == "true"

    @property
    def milestone_enabled(self) -> bool:
        return self.use_milestone == "true"

    @property
    def pipeline_enabled(self) -> bool:
        return self.use_pipeline == "true"


def _issue_path(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc) or "(root)"


def _issue_message(error: Mapping[str, Any]) -> str:
    # Custom validator messages arrive prefixed with "Value error, ".
    message = str(error.get("msg", "invalid value"))
    if error.get("type") == "value_error" and message.startswith("Value error, "):
        return message[len("Value error, "):]
    return message


def validate_config(raw: Mapping[str, Any]) -> DynamicConfig:
    """Validate an untyped mapping (e.g. query parameters) into a config.

    Raises:
        ConfigValidationError: listing every offending field.
    """
    try:
        return DynamicConfig.model_validate(dict(raw))
    except ValidationError as exc:
        issues = [
            FieldIssue(path=_issue_path(err["loc"]), message=_issue_message(err))
            for err in exc.errors()
        ]
        raise ConfigValidationError(issues) from None
