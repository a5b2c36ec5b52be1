"""
Logging Configuration

Centralized logging configuration for the orbit engine and its demo.
Engine modules log through ``logging.getLogger(__name__)``; applications
call ``configure_logging`` once at start-up.

The default level can be overridden with the ``ORBIT_ENGINE_LOG_LEVEL``
environment variable (``DEBUG``, ``INFO``, ``WARNING``, ...).

Usage:
    from logging_config import configure_logging, get_logger

    configure_logging(logging.DEBUG)
    logger = get_logger(__name__)
    logger.info("Loaded 42 satellites")
"""

import logging
import os
import sys
from typing import Optional, Union

# Default logging format
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVEL_ENV_VAR = "ORBIT_ENGINE_LOG_LEVEL"

# Loggers that emit once per frame at DEBUG
FRAME_LOGGERS = ("orbit_engine.context", "orbit_engine.fleet", "orbit_engine.ephemeris")


def resolve_level(level: Union[int, str, None]) -> int:
    """
    Turn a level name or number into a logging level.

    Parameters
    ----------
    level : int, str or None
        Explicit level; None falls back to the environment, then INFO

    Returns
    -------
    int
        Logging level
    """
    if level is None:
        level = os.environ.get(LEVEL_ENV_VAR, logging.INFO)
    if isinstance(level, str):
        value = logging.getLevelName(level.strip().upper())
        if not isinstance(value, int):
            raise ValueError(f"Unknown logging level {level!r}")
        return value
    return int(level)


def configure_logging(level: Union[int, str, None] = None, log_file: Optional[str] = None,
                      quiet_frames: bool = False) -> None:
    """
    Configure logging for the entire application.

    Parameters
    ----------
    level : int, str or None
        Logging level (e.g., logging.DEBUG or "DEBUG")
    log_file : str, optional
        Path to log file. If None, logs only to console.
    quiet_frames : bool
        Keep the per-frame loggers at INFO even when ``level`` is DEBUG
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=resolve_level(level),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name in FRAME_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO if quiet_frames else logging.NOTSET)


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    Parameters
    ----------
    name : str
        Name of the logger (typically __name__)

    Returns
    -------
    logging.Logger
        Configured logger instance
    """
    return logging.getLogger(name)
