"""
Logging Configuration

Library modules log through ``logging.getLogger(__name__)`` and never install
handlers themselves. Entry points call ``configure_logging`` once.

Levels used by the tracker:
    DEBUG    per-sample and per-tick detail
    INFO     session lifecycle, rate changes, scrubs, recoveries
    WARNING  excluded records, satellites that stop propagating, cache trouble
    ERROR    element source failures

Usage:
    from orbit_tracker.logging_config import configure_logging, get_logger

    configure_logging("DEBUG")
    logger = get_logger(__name__)
"""

import logging
import os
import sys
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_LEVEL_ENV = "ORBIT_TRACKER_LOG_LEVEL"

# Third-party loggers that flood DEBUG output
NOISY_LOGGERS = ("urllib3", "matplotlib", "PIL")


def resolve_level(level: Union[int, str, None]) -> int:
    """
    Turn a level name or number into a logging level.

    ``None`` reads ORBIT_TRACKER_LOG_LEVEL and falls back to INFO.

    Raises:
        ValueError: for an unknown level name
    """
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV, "INFO")
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def configure_logging(level: Union[int, str, None] = None, log_file: Optional[str] = None) -> None:
    """
    Install console (and optional file) handlers on the root logger.

    Parameters
    ----------
    level : int or str, optional
        Logging level or its name; defaults to ORBIT_TRACKER_LOG_LEVEL or INFO
    log_file : str, optional
        Path to log file. If None, logs only to console.
    """
    resolved = resolve_level(level)
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=resolved,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
