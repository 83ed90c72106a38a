"""
Logging
"""

# pyright: basic

import logging

from asgi_correlation_id.context import correlation_id
from loguru import logger

from fileguard.core.config import settings
from fileguard.schema.log_entry import LogEntry

__all__ = (
    "log_serializer",
    "logger",
    "sink",
    "uvicorn_log_config",
)


class InterceptHandler(logging.Handler):
    def emit(self, record):
        # Get corresponding Loguru level
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller to get correct stack depth
        frame, depth = logging.currentframe(), 2
        while frame.f_back and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


uvicorn_log_config = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "correlation_id": {
            "()": "asgi_correlation_id.CorrelationIdFilter",
            "default_value": "",
        },
    },
    "formatters": {
        "default": {
            "format": (
                '{"asctime":"%(asctime)s","levelname":"%(levelname)s","name":"%(name)s",'
                '"correlation_id":"%(correlation_id)s","message":"%(message)s"}'
            ),
        },
    },
    "handlers": {
        "default": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "stream": "ext://sys.stdout",
            "filters": ["correlation_id"],
        },
    },
    "loggers": {
        "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.access": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.error": {"handlers": ["default"], "level": "ERROR", "propagate": False},
    },
    "root": {"handlers": ["default"], "level": "DEBUG" if settings.DEBUG else "INFO"},
}


def _truncate(message: str) -> str:
    if len(message) > settings.LOG_MESSAGE_MAX_LEN:
        return message[: settings.LOG_MESSAGE_MAX_LEN - 3] + "..."
    return message


def log_serializer(record) -> str:
    """
    Render a loguru record as a single JSON line.

    The request correlation id comes from asgi-correlation-id; ``run_id`` and
    ``check_root`` are bound by the check runner with ``logger.contextualize``
    and follow the run into worker threads.
    """
    extra = record["extra"]
    exc = record["exception"]
    log_entry = LogEntry(
        asctime=record["time"],
        levelname=record["level"].name,
        name=record["name"] or "",
        message=_truncate(record["message"]),
        correlation_id=correlation_id.get() or None,
        run_id=extra.get("run_id"),
        check_root=extra.get("check_root"),
        exception=f"{exc.type.__name__}: {exc.value}" if exc is not None and exc.type is not None else None,
    )
    return log_entry.model_dump_json(exclude_none=True)


def sink(message) -> None:
    print(log_serializer(message.record))


logger.remove()

logger.add(
    sink,
    level="DEBUG" if settings.DEBUG else "INFO",
)


logging.basicConfig(handlers=[InterceptHandler()], level=logging.INFO)

# per-request chatter from the HTTP client stack
for _name in ("httpx", "httpcore"):
    logging.getLogger(_name).setLevel(logging.WARNING)
