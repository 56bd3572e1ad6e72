"""Progress and diagnostic reporting.

Components receive a *reporter*: a callable taking a message and keyword
fields. Reporters are fire-and-forget; a reporter that raises must never
change what the caller of an index operation observes, so components go
through `emit()` rather than calling the reporter directly.
"""

from __future__ import annotations

import sys
from typing import Any, Protocol

from loguru import logger


class Reporter(Protocol):
    """Sink for progress and diagnostic messages."""

    def __call__(self, message: str, **fields: Any) -> None: ...


def null_reporter(message: str, **fields: Any) -> None:
    """Reporter that discards everything."""


def loguru_reporter(level: str = "INFO") -> Reporter:
    """Return a reporter that forwards messages to loguru at ``level``.

    Keyword fields are attached to the record via ``bind`` so structured
    sinks can pick them up.
    """
    bound = logger.bind(component="tunedex")

    def _report(message: str, **fields: Any) -> None:
        bound.bind(**fields).log(level, message)

    return _report


def emit(reporter: Reporter, message: str, **fields: Any) -> None:
    """Deliver a message to ``reporter``, keeping reporter failures away from the caller."""
    try:
        reporter(message, **fields)
    except Exception:
        logger.opt(exception=True).debug("Reporter failed while handling {!r}", message)


def setup_logging(level: str = "INFO") -> None:
    """Replace loguru's default handler with a stderr sink at ``level``."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
    )
