"""Tests for logging setup."""

import logging
from unittest.mock import MagicMock

from breathsync.logger import LevelFilter, setup_logging


def _record(level):
    return logging.LogRecord("breathsync", level, __file__, 1, "msg", None, None)


class TestLevelFilter:
    """Tests for LevelFilter."""

    def test_accepts_range(self):
        """Should pass records inside the level range."""
        level_filter = LevelFilter(logging.DEBUG, logging.INFO)
        assert level_filter.filter(_record(logging.DEBUG))
        assert level_filter.filter(_record(logging.INFO))

    def test_rejects_outside_range(self):
        """Should drop records outside the level range."""
        level_filter = LevelFilter(logging.DEBUG, logging.INFO)
        assert not level_filter.filter(_record(logging.WARNING))


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_handlers(self):
        """Should split output into stdout and stderr handlers."""
        logger = setup_logging("DEBUG")
        assert logger.name == "breathsync"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        assert logger.propagate is False

    def test_reload_safe(self):
        """Should not stack handlers when called twice."""
        setup_logging("INFO")
        logger = setup_logging("INFO")
        assert len(logger.handlers) == 2

    def test_does_not_reach_root_handlers(self):
        """Should keep records away from handlers a host installs on the root logger."""
        root = logging.getLogger()
        host_handler = MagicMock(spec=logging.Handler)
        host_handler.level = logging.NOTSET
        root.addHandler(host_handler)
        try:
            setup_logging("INFO").info("frame loop started")
        finally:
            root.removeHandler(host_handler)
        host_handler.handle.assert_not_called()

    def test_propagate_hands_records_to_host(self):
        """Should install no handlers of its own when propagating."""
        try:
            logger = setup_logging("INFO", propagate=True)
            assert logger.propagate is True
            assert logger.handlers == []
        finally:
            setup_logging()

    def test_format_includes_thread_name(self):
        """Should tag each line with the emitting thread."""
        logger = setup_logging("INFO")
        record = _record(logging.INFO)
        record.threadName = "breathsync-swarm"
        line = logger.handlers[0].format(record)
        assert "breathsync [breathsync-swarm] - INFO - msg" in line
