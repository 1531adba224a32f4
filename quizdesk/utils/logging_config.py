"""Logging configuration helpers for QuizDesk."""

from __future__ import annotations

import logging
from logging import Logger

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# uvicorn installs its own handlers unless told otherwise; these are routed
# through the root handler instead so server and app lines share one format.
_SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def configure_logging(level: int = logging.INFO) -> Logger:
    """Configure root logging once and return the ``quizdesk`` package logger."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    for name in _SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True
    return logging.getLogger("quizdesk")
