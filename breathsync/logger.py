"""
Logging for breathsync.

INFO and DEBUG go to stdout, WARNING and ERROR to stderr, with the level
taken from LOG_LEVEL. The "breathsync" logger does not propagate: the swarm
is usually embedded in a host process that configures the root logger
itself, and propagating would print every swarm message twice (once from
our handlers, once from the host's). Hosts that want the records in their
own pipeline call setup_logging(propagate=True), which installs no handlers.

Records carry the thread name because the frame loop runs on its own
daemon thread (see runner.start_swarm_thread).
"""

import logging
import sys
from typing import Optional, TextIO

from breathsync.config import LOG_LEVEL

LOGGER_NAME = "breathsync"

# "2025-01-15 14:30:45 - breathsync [breathsync-swarm] - INFO - Message"
LOG_FORMAT = "%(asctime)s - %(name)s [%(threadName)s] - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class LevelFilter(logging.Filter):
    """Pass only records with level_min <= level <= level_max."""

    def __init__(self, level_min: int, level_max: int):
        super().__init__()
        self.level_min = level_min
        self.level_max = level_max

    def filter(self, record: logging.LogRecord) -> bool:
        return self.level_min <= record.levelno <= self.level_max


def _stream_handler(stream: TextIO, level_min: int, level_max: Optional[int] = None) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level_min)
    if level_max is not None:
        handler.addFilter(LevelFilter(level_min, level_max))
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(level: str = LOG_LEVEL, propagate: bool = False) -> logging.Logger:
    """
    Configure the breathsync logger. Safe to call again (handlers are replaced).

    Args:
        level: Minimum level name, e.g. "DEBUG"
        propagate: Hand records to the host's root logger instead of
            writing them to stdout/stderr

    Returns:
        The breathsync logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = propagate
    logger.handlers.clear()

    if not propagate:
        logger.addHandler(_stream_handler(sys.stdout, logging.DEBUG, logging.INFO))
        logger.addHandler(_stream_handler(sys.stderr, logging.WARNING))

    return logger


logger = setup_logging()
