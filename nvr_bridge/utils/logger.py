# nvr_bridge/utils/logger.py
"""
Centralised logging configuration for the entire application.
Logs to console and to a rotating file in /logs/.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs")
DEFAULT_LEVEL = "INFO"

_configured = False
_handlers: list[logging.Handler] = []


def _configure_root_logger():
    global _configured
    if _configured:
        return
    _configured = True

    os.makedirs(LOG_DIR, exist_ok=True)
    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console handler
    console = logging.StreamHandler()
    console.setFormatter(fmt)

    # Rotating file handler — keeps last 10 × 5MB log files
    file_handler = RotatingFileHandler(
        filename=os.path.join(LOG_DIR, "bridge.log"),
        maxBytes=5 * 1024 * 1024,
        backupCount=10,
        encoding="utf-8",
    )
    file_handler.setFormatter(fmt)

    root = logging.getLogger()
    for handler in (console, file_handler):
        handler.setLevel(DEFAULT_LEVEL)
        root.addHandler(handler)
        _handlers.append(handler)
    root.setLevel(DEFAULT_LEVEL)


def configure_logging(level: str) -> None:
    """Apply the configured LOG_LEVEL. Called once settings are loaded."""
    _configure_root_logger()
    level = level.upper()
    for handler in _handlers:
        handler.setLevel(level)
    logging.getLogger().setLevel(level)
    # httpx logs every request at INFO, which floods the log on status polls
    if level != "DEBUG":
        logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Call this at the top of every module."""
    _configure_root_logger()
    return logging.getLogger(name)
