import logging
import os
from datetime import datetime
from typing import Optional

import colorlog

from leaderboard_streaming.constants import LOGS_DIR


def setup_logging(level: int = logging.INFO, logs_dir: Optional[str] = LOGS_DIR):
    """Configure logging to both file and console with colors"""
    # NOTE: keeping different formatter since .log can't handle colors
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)-8s - %(message)s'
    )

    console_formatter = colorlog.ColoredFormatter(
        "%(green)s%(asctime)s%(reset)s - %(purple)s%(name)s - %(log_color)s%(levelname)s%(reset)s - %(message)s",
        log_colors={
            'DEBUG':    'cyan',
            'INFO':     'blue',
            'WARNING':  'yellow',
            'ERROR':    'red',
            'CRITICAL': 'red,bg_white',
        },
        secondary_log_colors={},
        style='%'
    )

    console_handler = colorlog.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(console_formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove any existing handlers
    root_logger.handlers = []
    root_logger.addHandler(console_handler)

    # A new log file for each run, skipped when logs_dir is None
    if logs_dir:
        os.makedirs(logs_dir, exist_ok=True)
        log_filename = f"{logs_dir}/leaderboard_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
        file_handler = logging.FileHandler(log_filename)
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)
