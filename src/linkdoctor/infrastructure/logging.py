from __future__ import annotations

import logging
import sys
import uuid
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

import structlog
from structlog.typing import Processor

from linkdoctor.config.settings import LOG_FORMAT_JSON, LoggingSettings

BoundLogger = structlog.stdlib.BoundLogger


def _build_processors(json_logs: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return processors


def _configure_structlog(settings: LoggingSettings) -> None:
    json_logs = settings.format == LOG_FORMAT_JSON
    structlog.configure(
        processors=_build_processors(json_logs),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Loggers held by long-lived components must follow later reconfiguration.
        cache_logger_on_first_use=False,
    )


def _build_handler(level: int, handler: logging.Handler) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def configure_logging(settings: LoggingSettings) -> None:
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(settings.level)

    console_handler = _build_handler(settings.level, logging.StreamHandler(sys.stderr))
    root_logger.addHandler(console_handler)

    if settings.file_path:
        file_handler = _build_handler(
            settings.level,
            RotatingFileHandler(
                settings.file_path,
                maxBytes=settings.max_bytes,
                backupCount=settings.backup_count,
            ),
        )
        root_logger.addHandler(file_handler)

    _configure_structlog(settings)


def get_logger(name: str) -> BoundLogger:
    return structlog.get_logger(name)


def attach_request_context(
    logger: BoundLogger,
    *,
    request_id: Optional[str] = None,
    operation: Optional[str] = None,
    **base_fields: Any,
) -> BoundLogger:
    """Bind a correlation id (generated when absent) and optional operation name."""

    bound = logger.bind(request_id=request_id or str(uuid.uuid4()))
    if operation:
        bound = bound.bind(operation=operation)

    extras = {key: value for key, value in base_fields.items() if value is not None}
    if extras:
        bound = bound.bind(**extras)

    return bound


def log_event(
    logger: BoundLogger,
    event: str,
    *,
    level: int = logging.INFO,
    message: Optional[str] = None,
    **fields: Any,
) -> None:
    event_fields = {key: value for key, value in fields.items() if value is not None}
    event_logger = logger.bind(event_name=event)
    if event_fields:
        event_logger = event_logger.bind(**event_fields)
    event_logger.log(level, message or event)


def log_transition_event(
    logger: BoundLogger,
    action: str,
    *,
    status: Optional[str] = None,
    attempt_count: Optional[int] = None,
    max_attempts: Optional[int] = None,
    **fields: Any,
) -> None:
    log_event(
        logger,
        f"connection.{action}",
        status=status,
        attempt_count=attempt_count,
        max_attempts=max_attempts,
        **fields,
    )


def log_repair_event(
    logger: BoundLogger,
    action: str,
    *,
    identity_id: Optional[str] = None,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    log_event(logger, f"access_repair.{action}", level=level, identity_id=identity_id, **fields)


__all__ = [
    "BoundLogger",
    "configure_logging",
    "get_logger",
    "attach_request_context",
    "log_event",
    "log_transition_event",
    "log_repair_event",
]
