"""
Logging configuration for the token indexer.

The indexer runs inside a host process, so by default it only writes
warnings to stderr. A log file is opt-in.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEBUG_ENV = "TOKEN_INDEXER_DEBUG"
LOG_LEVEL_ENV = "TOKEN_INDEXER_LOG_LEVEL"
LOG_CONSOLE_ENV = "TOKEN_INDEXER_LOG_CONSOLE"
LOG_FILE_ENV = "TOKEN_INDEXER_LOG_FILE"
LOG_FORMAT_ENV = "TOKEN_INDEXER_LOG_FORMAT"

LOG_LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

_TRUTHY = ("1", "true", "yes")
_FALSY = ("0", "false", "no")


@dataclass
class LogConfig:
    """Configuration for the logging system.

    Attributes:
        level: Level of the indexer's root logger
        console_enabled: Whether records go to stderr
        log_file: Rotating log file, or None for no file output
        json_format: Write the log file as JSON lines instead of text
        max_bytes: Size of the log file before rotation
        backup_count: Rotated files to keep
    """

    level: int = logging.INFO
    console_enabled: bool = True
    log_file: Optional[Path] = None
    json_format: bool = False
    max_bytes: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


def get_config() -> LogConfig:
    """Create a LogConfig from environment variables.

    Environment variables:
        TOKEN_INDEXER_DEBUG: '1', 'true' or 'yes' enables debug level
        TOKEN_INDEXER_LOG_LEVEL: 'debug', 'info', 'warning', 'error' or 'critical'
        TOKEN_INDEXER_LOG_CONSOLE: '1'/'0' turns stderr output on or off
        TOKEN_INDEXER_LOG_FILE: Path of a rotating log file
        TOKEN_INDEXER_LOG_FORMAT: 'json' writes the log file as JSON lines
    """
    config = LogConfig()

    if os.environ.get(DEBUG_ENV, "").lower() in _TRUTHY:
        config.level = logging.DEBUG

    log_level_str = os.environ.get(LOG_LEVEL_ENV, "").lower()
    if log_level_str in LOG_LEVEL_MAP:
        config.level = LOG_LEVEL_MAP[log_level_str]

    console_env = os.environ.get(LOG_CONSOLE_ENV, "").lower()
    if console_env in _TRUTHY:
        config.console_enabled = True
    elif console_env in _FALSY:
        config.console_enabled = False

    log_file = os.environ.get(LOG_FILE_ENV)
    if log_file:
        config.log_file = Path(log_file).expanduser()

    config.json_format = os.environ.get(LOG_FORMAT_ENV, "").lower() == "json"

    return config
