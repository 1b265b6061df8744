"""
Process-wide logging setup.

Modules take a named logger with get_logger(__name__) at import time;
entry points (the CLI and the app factory) call setup_logging once.
LOG_LEVEL in the environment sets the default threshold.
"""

import logging
import os

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Configure the root logger. Unknown level names fall back to INFO."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
