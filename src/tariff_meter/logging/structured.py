"""Structured logging setup using structlog."""

from __future__ import annotations

import logging
import sys

import structlog

from tariff_meter.config.schema import LoggingConfig
from tariff_meter.dashboard.log_buffer import log_buffer

# Chatty third-party loggers capped at WARNING
_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "aiomqtt")

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def _renderer(fmt: str) -> structlog.types.Processor:
    if fmt == "console":
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    return structlog.processors.JSONRenderer()


def build_formatter(fmt: str = "json") -> structlog.stdlib.ProcessorFormatter:
    """Formatter rendering both structlog and plain stdlib records."""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(fmt),
        ],
    )


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Route all logging through structlog.

    Records go to stdout, to ``config.file`` when set, and to the in-memory
    buffer served by ``GET /api/logs``.
    """
    config = config or LoggingConfig()

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = build_formatter(config.format)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.file:
        handlers.append(logging.FileHandler(config.file))
    for handler in handlers:
        handler.setFormatter(formatter)

    # The buffer keeps the bare message; level and logger are stored alongside
    log_buffer.resize(config.buffer_size)
    handlers.append(log_buffer)

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
