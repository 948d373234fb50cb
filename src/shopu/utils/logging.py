"""Logging setup for the shopu API.

Level, renderer and log directory all come from `shopu.config.Settings`, so
`LOG_LEVEL`, `ENVIRONMENT` and `LOG_DIR` work the same from the process
environment or from `.env`. structlog does the rendering (JSON lines when
deployed, a colored console otherwise) and hands finished lines to the
stdlib root logger, which writes them to stdout and to rotating files.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import structlog

from shopu.config import Settings, get_settings

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

# Third-party loggers that are noisy below WARNING
QUIET_LOGGERS = ("urllib3", "asyncio", "multipart")


def _rotating_file(path: Path, level: int | str) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    handler.setLevel(level)
    return handler


def _handlers(settings: Settings) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.LOG_DIR:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(_rotating_file(log_dir / "shopu.log", settings.LOG_LEVEL))
        handlers.append(_rotating_file(log_dir / "shopu_error.log", logging.ERROR))
    return handlers


def _renderer(settings: Settings):
    if settings.json_logs:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stdout.isatty(),
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=4),
    )


def configure_logging(settings: Settings | None = None) -> None:
    """Route stdlib and structlog output according to `settings` (defaults to `get_settings()`)."""
    settings = settings or get_settings()

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in _handlers(settings):
        root.addHandler(handler)
    root.setLevel(settings.LOG_LEVEL)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(settings),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def add_context(**kwargs: Any) -> None:
    """Bind values (request id, tenant id) to every log line of the current request."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
