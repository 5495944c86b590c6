"""
Logger utilities for the checkout services.

setup_logger() gives each app its own console and rotating file handlers.
Every record is tagged with the fields currently bound by log_context(), so
the lines written while serving one request (or from inside the monitored
transport) can be grepped together:

    with log_context(request_id="5f2c01ab", method="POST"):
        checkout_api_logger.info("Checkout rejected: invalid_items - ...")

    2026-01-01 12:00:00 - checkout_api - INFO - [request_id=5f2c01ab method=POST] Checkout rejected: ...
"""

import logging
import sys
import os
from contextlib import contextmanager
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from typing import Dict, Iterator

LOG_DIR = os.getenv("LOG_DIR", "logs")
if not os.path.exists(LOG_DIR):
    os.makedirs(LOG_DIR)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(context)s%(message)s"

# Never mutated in place; log_context() binds a new dict.
_log_context: ContextVar[Dict[str, str]] = ContextVar("log_context", default={})


@contextmanager
def log_context(**fields) -> Iterator[Dict[str, str]]:
    """Bind ``fields`` on top of the current context for the duration of the block."""
    bound = {**_log_context.get(), **{key: str(value) for key, value in fields.items()}}
    token = _log_context.set(bound)
    try:
        yield bound
    finally:
        _log_context.reset(token)


def current_log_context() -> Dict[str, str]:
    return dict(_log_context.get())


class ContextTagFilter(logging.Filter):
    """Sets ``record.context`` to ``"[k=v ...] "``, or ``""`` when nothing is bound."""

    def filter(self, record: logging.LogRecord) -> bool:
        fields = _log_context.get()
        record.context = f"[{' '.join(f'{k}={v}' for k, v in fields.items())}] " if fields else ""
        return True


def setup_logger(name: str, log_level: int = logging.INFO, log_file: str = None) -> logging.Logger:
    """
    Sets up a logger with console, file and error-file handlers.

    Args:
        name (str): The name of the logger.
        log_level (int): The logging level (default: logging.INFO).
        log_file (str): Optional log filename (without path). Defaults to "{name}.log".

    Returns:
        logging.Logger: The configured logger instance.
    """
    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    # Handlers are attached once per process
    if not logger.handlers:
        if log_file is None:
            log_file = f"{name}.log"

        app_log_file = os.path.join(LOG_DIR, log_file)
        error_log_file = os.path.join(LOG_DIR, f"{os.path.splitext(log_file)[0]}_error.log")

        formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        context_filter = ContextTagFilter()

        # On the logger so propagated records (and pytest's caplog) carry the tag too
        logger.addFilter(context_filter)

        console_handler = logging.StreamHandler(sys.stdout)

        file_handler = RotatingFileHandler(
            app_log_file, maxBytes=10*1024*1024, backupCount=5, encoding="utf-8"
        )

        error_file_handler = RotatingFileHandler(
            error_log_file, maxBytes=10*1024*1024, backupCount=5, encoding="utf-8"
        )
        error_file_handler.setLevel(logging.ERROR)

        for handler in (console_handler, file_handler, error_file_handler):
            handler.setFormatter(formatter)
            # Child loggers propagate here without passing the logger filter
            handler.addFilter(context_filter)
            logger.addHandler(handler)

    return logger
