"""
Structured logging with structlog.

Two output modes:

- console: colored, human readable; the default outside production
- JSON: one object per line, for log aggregation in production

Call configure_logging() once at startup (the app lifespan does), then
log with key/value context:

    logger = get_logger(__name__)
    logger.info("Item created", user_id=user_id, item_id=item_id)
"""

import logging
import sys
from typing import Any, List, Optional

import structlog
from structlog.types import Processor


# Third-party loggers that are chatty at INFO
_NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "hpack",
    "uvicorn.access",
    "google_genai",
    "urllib3",
)


def _build_processors(json_logs: bool, include_timestamp: bool) -> List[Processor]:
    processors: List[Processor] = []
    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
    processors += [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_logs:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        ))
    return processors


def configure_logging(
    json_logs: bool = False,
    log_level: str = "INFO",
    include_timestamp: bool = True,
) -> None:
    """
    Route structlog through the standard library to stdout.

    Args:
        json_logs: JSON lines instead of the colored console renderer
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        include_timestamp: Add an ISO ``timestamp`` key
    """
    structlog.configure(
        processors=_build_processors(json_logs, include_timestamp),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # force: uvicorn installs its own root handler before the lifespan runs
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Logger for a module, usually ``get_logger(__name__)``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach key/values (request_id, user_id) to every log in the current request."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop all request context; the tracing middleware calls this per request."""
    structlog.contextvars.clear_contextvars()


class LoggerMixin:
    """
    Gives services and clients a ``self.logger`` named after the class.

        class UploadPipeline(LoggerMixin):
            def process(self, user):
                self.logger.info("Processing", user_id=user.id)
    """

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        return get_logger(self.__class__.__name__)
