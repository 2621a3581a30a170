"""Application-wide configuration loader.

This module
1. loads a ``.env`` file (if present) into the process environment;
2. reads the environment into an immutable :class:`Settings` object; and
3. exposes a module-level ``settings`` singleton plus a validation helper
   that startup code calls once before building the completion service.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from timetable_ai.exceptions import ConfigurationError

load_dotenv()

logger = logging.getLogger(__name__)

REQUIRED_ENV_VARS: tuple[str, ...] = ("OPENAI_API_KEY",)


class Settings(BaseModel):
    """Process configuration, built once from environment variables.

    Empty variables (``PORT=""``) behave exactly like unset ones, which is why
    :func:`load_settings` uses the idiom ``os.getenv(KEY) or DEFAULT`` rather
    than ``os.getenv(KEY, DEFAULT)``.
    """

    model_config = ConfigDict(frozen=True)

    PORT: int = 3000
    NODE_ENV: str = "development"
    OPENAI_API_KEY: Optional[str] = None
    CORS_ORIGIN: str = "http://localhost:5173"
    LOG_DIR: str = "backend/logs"
    LOG_LEVEL: str = "INFO"


def load_settings() -> Settings:
    """Read the current environment into a fresh :class:`Settings`."""

    return Settings(
        PORT=int(os.getenv("PORT") or "3000"),
        NODE_ENV=os.getenv("NODE_ENV") or "development",
        OPENAI_API_KEY=os.getenv("OPENAI_API_KEY") or None,
        CORS_ORIGIN=os.getenv("CORS_ORIGIN") or "http://localhost:5173",
        LOG_DIR=os.getenv("LOG_DIR") or "backend/logs",
        LOG_LEVEL=os.getenv("LOG_LEVEL") or "INFO",
    )


def validate_settings(settings: Settings | None = None) -> None:
    """Raise :class:`ConfigurationError` listing every missing required variable."""

    current = settings if settings is not None else load_settings()
    missing = [name for name in REQUIRED_ENV_VARS if not getattr(current, name)]
    if missing:
        message = f"Missing required environment variables: {', '.join(missing)}"
        logger.error(message)
        raise ConfigurationError(message)


settings = load_settings()
