"""
Loguru setup for the relay service.

Log lines must stay single-line so they survive line-oriented shipping;
``one_line`` flattens exception tracebacks for that purpose.
"""

from __future__ import annotations

import sys
import traceback
from typing import Optional

from loguru import logger

LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[scheduler]: <6} | {name}:{line} - {message}"
)


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Replace loguru's default sink with the service format.

    Args:
        level: Minimum level for every sink
        log_file: Optional path for a rotating file sink
    """
    logger.remove()
    logger.configure(extra={"scheduler": "-"})
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT, backtrace=False)
    if log_file:
        logger.add(
            log_file,
            level=level.upper(),
            format=LOG_FORMAT,
            rotation="10 MB",
            retention=10,
            enqueue=True,
        )
    logger.debug(f"Logging configured (level={level.upper()}, file={log_file})")


def one_line(exc: BaseException) -> str:
    """Full exception detail (type, message, traceback) with newlines removed."""
    text = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return " ".join(part.strip() for part in text.splitlines() if part.strip())
