"""
Log handlers for the token indexer: stderr plus an optional rotating file.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler

from .config import LogConfig
from .formatters import HumanFormatter, JsonFormatter


def create_console_handler(config: LogConfig) -> logging.StreamHandler:
    """Stderr handler. Shows warnings and above unless the level is DEBUG."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG if config.level == logging.DEBUG else logging.WARNING)
    handler.setFormatter(HumanFormatter())
    return handler


def create_file_handler(config: LogConfig) -> RotatingFileHandler:
    """Rotating handler for config.log_file, text or JSON lines."""
    if config.log_file is None:
        raise ValueError("LogConfig.log_file is not set")
    config.log_file.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=config.log_file,
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(JsonFormatter() if config.json_format else HumanFormatter())
    return handler


def build_handlers(config: LogConfig) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if config.console_enabled:
        handlers.append(create_console_handler(config))
    if config.log_file is not None:
        handlers.append(create_file_handler(config))
    return handlers


def setup_handlers(logger: logging.Logger, config: LogConfig) -> None:
    """Replace the handlers of `logger` with those described by `config`."""
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    for handler in build_handlers(config):
        logger.addHandler(handler)

    logger.setLevel(config.level)
