"""
Logging setup.

Core modules log through the standard library; service code logs
structured events through structlog. Both end up on the same handlers.
"""

import logging
import sys

import structlog
from structlog.types import Processor

from extauth.core.config import Settings, settings as default_settings


def _add_app_context(settings: Settings) -> Processor:
    def processor(logger, method_name, event_dict):
        event_dict.setdefault("app", settings.app_name)
        event_dict.setdefault("environment", settings.environment)
        return event_dict
    return processor


def configure_logging(settings: Settings | None = None) -> None:
    """Configure stdlib logging and structlog from settings."""
    settings = settings or default_settings
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s" if settings.log_format == "json" else "%(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
        level=level,
        force=True,
    )

    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            _add_app_context(settings),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(sys.stdout),
        cache_logger_on_first_use=False,
    )
