"""
Logging configuration.

Provides a single entry point for configuring structured logging and the
process-wide base logger every span and facade call writes through.

Configuration comes from ``JoggerSettings`` (see ``jogger.settings``):
- level filter (default INFO)
- console output with ISO-8601 timestamps and colorized level names,
  or JSON lines
- stdout as the sink

Usage:
    # Configure at application startup
    from jogger import configure_logging
    configure_logging()

    # Or with explicit settings
    configure_logging(JoggerSettings(log_format="json"), force=True)

If nothing configures logging explicitly, the first call to
``get_base_logger()`` does it with the environment-driven settings.
"""

from __future__ import annotations

import logging
import sys
import threading

import structlog
from structlog.types import Processor

from jogger.settings import JoggerSettings, get_settings

# Settings in effect once configured; None until then
_active: JoggerSettings | None = None
_lock = threading.Lock()


def configure_logging(settings: JoggerSettings | None = None, force: bool = False) -> JoggerSettings:
    """
    Configure structlog and stdlib logging.

    Should be called once at application startup. Subsequent calls are
    no-ops unless force=True.

    Args:
        settings: Settings to apply (defaults to the cached env-driven settings)
        force: Reconfigure even if already configured

    Returns:
        The settings now in effect
    """
    global _active

    with _lock:
        if _active is not None and not force:
            return _active

        settings = settings or get_settings()
        level = getattr(logging, settings.log_level)

        processors: list[Processor] = [
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            # UTC ISO-8601 timestamps
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
        ]

        if settings.log_format == "json":
            processors.append(structlog.processors.format_exc_info)
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(
                structlog.dev.ConsoleRenderer(
                    colors=settings.colors,
                    exception_formatter=structlog.dev.plain_traceback,
                )
            )

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=level,
            force=True,
        )
        logging.getLogger(settings.logger_name).setLevel(level)

        _active = settings
        return settings


def get_base_logger() -> structlog.stdlib.BoundLogger:
    """
    Return the process-wide base logger, configuring logging on first use.

    The returned logger carries no identity fields; callers bind their own.
    """
    settings = _active if _active is not None else configure_logging()
    return structlog.get_logger(settings.logger_name)


def active_settings() -> JoggerSettings:
    """Settings in effect, configuring logging first if nothing has yet."""
    return _active if _active is not None else configure_logging()


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _active is not None
