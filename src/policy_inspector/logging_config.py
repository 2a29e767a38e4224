"""
Logging configuration.

structlog is wired on top of the stdlib logging module so that log events
from this package and from third-party libraries (requests, urllib3) share
one renderer. Logs always go to stderr: stdout is reserved for reports and
evaluation results.
"""

import logging
import sys
from typing import Any, List

import structlog

from . import config


def setup_logging(level: str = None, json_output: bool = None) -> None:
    """
    Configure structlog and stdlib logging.

    Args:
        level: Log level name (debug, info, warning, error). Defaults to
            the POLICY_INSPECTOR_LOG_LEVEL environment variable.
        json_output: Render events as JSON lines instead of the coloured
            console format. Defaults to POLICY_INSPECTOR_LOG_JSON.
    """
    if level is None:
        level = config.log_level()
    if json_output is None:
        json_output = config.log_json()

    log_level = getattr(logging, level.upper(), logging.WARNING)

    shared_processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt='iso', utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # urllib3 logs every connection at debug level
    logging.getLogger('urllib3').setLevel(max(log_level, logging.INFO))
