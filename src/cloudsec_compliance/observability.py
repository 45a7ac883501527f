"""Structured logging setup.

Every module obtains its logger with ``get_logger(__name__)`` and logs an
event name plus key/value context::

    logger.info("Compliance check complete", verdicts=12, failures=3)

``configure_logging`` is called once per process by the entry points (Lambda
handler, API lifespan, CLI). Until then structlog's defaults apply.
"""

import logging
import sys
from typing import Any

import structlog


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Configure structlog rendering for the current process.

    Args:
        level: Minimum log level name (DEBUG, INFO, WARNING, ERROR).
        json_logs: Render one JSON object per line instead of the console
            renderer. Use in Lambda so CloudWatch Logs Insights can parse it.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    renderer: structlog.typing.Processor = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> Any:
    """Return a structured logger bound to the given module name.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        A structlog logger accepting key/value context on every call.
    """
    return structlog.get_logger(name)
