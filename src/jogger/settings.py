"""Settings for jogger logging.

``JoggerSettings`` is the single configuration object for the package. It is
read once from ``JOGGER_*`` environment variables (and an optional ``.env``
file), validated by pydantic, and frozen so it can be shared freely.

Environment variables:
- JOGGER_LOG_LEVEL: DEBUG | INFO | WARNING | ERROR (default: INFO)
- JOGGER_LOG_FORMAT: console | json (default: console)
- JOGGER_COLORS: colorize console output (default: true)
- JOGGER_LOGGER_NAME: name of the base logger (default: jogger)
- JOGGER_SLOW_THRESHOLD: seconds after which a span counts as slow (default: 1.0)

Examples:
    >>> from jogger.settings import JoggerSettings
    >>> JoggerSettings(log_format="json").log_format
    'json'
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class JoggerSettings(BaseSettings):
    """Logging settings shared by the base logger and every span."""

    model_config = SettingsConfigDict(
        env_prefix="JOGGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["console", "json"] = "console"
    colors: bool = True
    logger_name: str = "jogger"

    slow_threshold: float = Field(
        default=1.0,
        ge=0,
        description="Elapsed seconds above which a finished span is logged as slow",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @field_validator("log_format", mode="before")
    @classmethod
    def _lower_format(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value


@lru_cache(maxsize=1)
def get_settings() -> JoggerSettings:
    return JoggerSettings()
