"""Warden configuration via pydantic-settings."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WardenSettings(BaseSettings):
    """Engine settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_prefix="WARDEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_json: bool = False
    log_decisions: bool = False  # INFO per decision instead of DEBUG

    # Credential verification
    pbkdf2_algorithm: Literal["sha256", "sha512"] = "sha256"
    pbkdf2_iterations: int = Field(default=260_000, ge=1)
    verifier_options: dict[str, Any] = Field(default_factory=dict)

    @property
    def decision_log_level(self) -> int:
        return logging.INFO if self.log_decisions else logging.DEBUG


_settings: WardenSettings | None = None


def get_settings() -> WardenSettings:
    """Get the settings singleton."""
    global _settings
    if _settings is None:
        _settings = WardenSettings()
    return _settings


class JsonLogFormatter(logging.Formatter):
    """Format log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(settings: WardenSettings | None = None) -> bool:
    """Install a root handler for Warden logs.

    Does nothing when the root logger already has handlers (host
    application or test runner configured it). Returns whether a handler
    was installed.
    """
    settings = settings or get_settings()
    root = logging.getLogger()
    if root.handlers:
        return False

    handler = logging.StreamHandler(sys.stderr)
    if settings.log_json:
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    root.addHandler(handler)
    root.setLevel(settings.log_level)
    return True
