"""
Structured logging for the token indexer.

This module provides:
- Stderr output, plus an optional rotating file in text or JSON lines
- Batch/slot context tracking

Simple API:
    from token_indexer.utils.logger import debug, info, warn, error, exception

    info("Prepared bulk statement")

Context API:
    from token_indexer.utils.logger import log_context

    with log_context(auto_batch_id=True):
        info("Flushing owner index")  # Includes batch=... in the log line
"""

import logging
from typing import Any, Optional

from .config import LogConfig, get_config
from .context import (
    ContextFilter,
    log_context,
    get_batch_id,
    get_slot,
    generate_batch_id,
)
from .handlers import setup_handlers

# Root logger name for the application
ROOT_LOGGER_NAME = "token_indexer"

_initialized = False
_root_logger: Optional[logging.Logger] = None


def setup_logging(config: Optional[LogConfig] = None) -> logging.Logger:
    """Initialize the logging system.

    Call once at startup. get_logger() calls it lazily otherwise.

    Args:
        config: Optional LogConfig. If not provided, reads from environment.

    Returns:
        The configured root logger.
    """
    global _initialized, _root_logger

    if config is None:
        config = get_config()

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    setup_handlers(logger, config)

    # Child logger records bypass logger-level filters
    for handler in logger.handlers:
        handler.addFilter(ContextFilter())

    logger.propagate = False

    _initialized = True
    _root_logger = logger

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance.

    If name is provided, returns a child logger of the root logger.

    Example:
        logger = get_logger("gateway")
        logger.info("Connected")  # Logs as "token_indexer.gateway"
    """
    if not _initialized:
        setup_logging()

    if name:
        return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
    return _root_logger or logging.getLogger(ROOT_LOGGER_NAME)


def debug(msg: str, *args: Any, **kwargs: Any) -> None:
    """Log a debug message."""
    get_logger().debug(msg, *args, stacklevel=2, **kwargs)


def info(msg: str, *args: Any, **kwargs: Any) -> None:
    """Log an info message."""
    get_logger().info(msg, *args, stacklevel=2, **kwargs)


def warn(msg: str, *args: Any, **kwargs: Any) -> None:
    """Log a warning message."""
    get_logger().warning(msg, *args, stacklevel=2, **kwargs)


def error(msg: str, *args: Any, **kwargs: Any) -> None:
    """Log an error message."""
    get_logger().error(msg, *args, stacklevel=2, **kwargs)


def exception(msg: str, *args: Any, **kwargs: Any) -> None:
    """Log an error message with the active exception's traceback.

    Call from an except block.
    """
    get_logger().exception(msg, *args, stacklevel=2, **kwargs)


__all__ = [
    "debug",
    "info",
    "warn",
    "error",
    "exception",
    "setup_logging",
    "get_logger",
    "LogConfig",
    "get_config",
    "log_context",
    "get_batch_id",
    "get_slot",
    "generate_batch_id",
    "ContextFilter",
]
