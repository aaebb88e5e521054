"""
structlog configuration for the gateway process.
"""

import logging
import sys
from typing import Optional

import structlog

from dbef.config import settings


def configure_logging(level: Optional[str] = None, json_output: Optional[bool] = None) -> None:
    """Configure structlog rendering and level filtering."""
    level = (level or settings.log_level).upper()
    json_output = settings.log_json if json_output is None else json_output

    level_no = getattr(logging, level, logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level_no,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_no),
        cache_logger_on_first_use=True,
    )

    # Quiet the HTTP client's per-request lines
    logging.getLogger("httpx").setLevel(logging.WARNING)
