"""
Logging Setup

structlog key/value events rendered through the stdlib logging tree, so the
engine's events and uvicorn's access log share one handler and one format.
Every event carries the service name, environment and reporting time zone,
which is what a dashboard number has to be read against.
"""

import logging
import sys
from typing import Any, Dict, List, Optional, TextIO

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import ProcessorFormatter, add_log_level
from structlog.types import Processor

from marketplace_analytics.config.settings import Settings, get_settings

# Server loggers that install their own handlers; they propagate to ours instead
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _service_context(settings: Settings) -> Processor:
    context = {
        "service": settings.app_name,
        "environment": settings.app_env,
        "timezone": settings.analytics.timezone,
    }

    def add_service_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        for key, value in context.items():
            event_dict.setdefault(key, value)
        return event_dict

    return add_service_context


def _shared_processors(settings: Settings) -> List[Processor]:
    """Processors applied to structlog and foreign stdlib records alike"""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        _service_context(settings),
        TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str, stream: TextIO) -> Processor:
    if log_format == "json":
        return JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=stream.isatty())


def configure_logging(log_level: Optional[str] = None, stream: Optional[TextIO] = None) -> None:
    """
    Configure structlog and the stdlib root logger.

    Called on every application startup; each call replaces the previous
    root handler.

    Args:
        log_level: Override of the configured level (DEBUG, INFO, WARNING, ERROR)
        stream: Output stream, stdout by default
    """
    settings = get_settings()
    level = (log_level or settings.monitoring.log_level).upper()
    numeric_level = logging.getLevelNamesMapping().get(level, logging.INFO)
    stream = stream or sys.stdout
    shared = _shared_processors(settings)

    structlog.configure(
        processors=shared + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(ProcessorFormatter(
        processors=[
            ProcessorFormatter.remove_processors_meta,
            _renderer(settings.monitoring.log_format, stream),
        ],
        foreign_pre_chain=shared,
    ))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(numeric_level)

    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers = []
        server_logger.propagate = True
        server_logger.setLevel(numeric_level)

    structlog.get_logger(__name__).info(
        "Logging configured",
        level=level,
        format=settings.monitoring.log_format,
    )
