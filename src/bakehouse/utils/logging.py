"""Logging configuration for the Bakehouse domain.

Every event carries ``service`` and ``env`` fields, and domain values
(statuses, payment states, product-name sets) are rendered as plain strings
and lists so that the JSON output of production stays queryable.
"""

import logging
import logging.handlers
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Any

import structlog

from bakehouse.config import BakehouseConfig

SERVICE_NAME = "bakehouse"

_LEVELS_BY_ENV = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

# Libraries that are chatty at DEBUG
_QUIET_LOGGERS = ("asyncio", "protean")


def get_log_level(env: str | None = None) -> str:
    """Log level for ``env``; ``LOG_LEVEL`` overrides it."""
    env = (env or os.getenv("BAKEHOUSE_ENV") or "development").lower()
    return os.getenv("LOG_LEVEL", _LEVELS_BY_ENV.get(env, "INFO"))


def add_service_context(env: str):
    """Processor stamping the service name and environment on every event."""

    def processor(logger, method_name, event_dict):
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("env", env)
        return event_dict

    return processor


def render_domain_values(logger, method_name, event_dict):
    """Turn enums into their values and sets into sorted lists."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
        elif isinstance(value, set | frozenset):
            event_dict[key] = sorted(value)
    return event_dict


def setup_stdlib_logging(level: str, log_dir: str | None = None) -> None:
    """Route stdlib logging to stdout and, when ``log_dir`` is set, rotating files."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if not log_dir:
        return

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    for filename, handler_level in ((f"{SERVICE_NAME}.log", level), (f"{SERVICE_NAME}_error.log", logging.ERROR)):
        handler = logging.handlers.RotatingFileHandler(
            filename=log_path / filename,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        handler.setLevel(handler_level)
        root_logger.addHandler(handler)


def setup_structlog(env: str) -> None:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        add_service_context(env),
        render_domain_values,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if env in ("production", "staging"):
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=env == "development",
                exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=4),
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(config: BakehouseConfig | None = None) -> None:
    """Configure all logging for the engine from its config."""
    config = config or BakehouseConfig.from_env()
    env = config.env.lower()
    level = get_log_level(env)

    setup_stdlib_logging(level, config.log_dir)
    setup_structlog(env)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def add_context(**kwargs: Any) -> None:
    """Add context variables that will be included in all subsequent log messages."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
