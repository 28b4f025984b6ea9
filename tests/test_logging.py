# tests/test_logging.py

import logging

import colorlog
import pytest

from leaderboard_streaming.config.logging import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        handler.close()
    root.handlers = handlers
    root.setLevel(level)


def test_setup_logging_writes_console_and_file(tmp_path, restore_root_logger):
    setup_logging(logs_dir=str(tmp_path))

    root = restore_root_logger
    assert len(root.handlers) == 2
    assert isinstance(root.handlers[0].formatter, colorlog.ColoredFormatter)

    logging.getLogger("leaderboard_streaming.test").info("hello leaderboard")
    for handler in root.handlers:
        handler.flush()

    log_files = list(tmp_path.glob("leaderboard_*.log"))
    assert len(log_files) == 1
    assert "hello leaderboard" in log_files[0].read_text()


def test_setup_logging_console_only(restore_root_logger):
    setup_logging(level=logging.DEBUG, logs_dir=None)

    root = restore_root_logger
    assert len(root.handlers) == 1
    assert root.level == logging.DEBUG
