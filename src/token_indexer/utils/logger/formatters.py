"""
Log formatters for the token indexer.

Provides human-readable and JSON formatters for structured logging.
"""

import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Any


def _context_fields(record: logging.LogRecord) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    batch_id = getattr(record, "batch_id", None)
    slot = getattr(record, "slot", None)
    if batch_id:
        fields["batch"] = batch_id
    if slot is not None:
        fields["slot"] = slot
    return fields


class HumanFormatter(logging.Formatter):
    """Human-readable log formatter.

    Format: YYYY-MM-DD HH:MM:SS.mmm | LEVEL | component | file:line | message

    Example:
        2024-01-15 14:23:45.123 | INFO  | token_indexer.engine | engine.py:42 | Flushed 10 rows [batch=1f2e3d4c]
    """

    LEVEL_WIDTH = 5

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        time_str = timestamp.strftime("%Y-%m-%d %H:%M:%S.") + f"{int(record.msecs):03d}"

        level = record.levelname.ljust(self.LEVEL_WIDTH)
        component = self._shorten_name(record.name)
        location = f"{record.filename}:{record.lineno}"
        message = record.getMessage()

        context = _context_fields(record)
        if context:
            parts = [f"{key}={value}" for key, value in context.items()]
            message = f"{message} [{' '.join(parts)}]"

        formatted = f"{time_str} | {level} | {component} | {location} | {message}"

        if record.exc_info:
            formatted = f"{formatted}\n{self.formatException(record.exc_info)}"

        return formatted

    def _shorten_name(self, name: str, max_len: int = 24) -> str:
        """Shorten a logger name for display, padded to max_len."""
        if len(name) <= max_len:
            return name.ljust(max_len)

        parts = name.split(".")
        if len(parts) >= 2:
            shortened = f"{parts[0]}...{parts[-1]}"
            if len(shortened) <= max_len:
                return shortened.ljust(max_len)

        return name[: max_len - 3] + "..."


class JsonFormatter(logging.Formatter):
    """JSON Lines log formatter.

    Output fields:
        - timestamp: ISO 8601 format with timezone
        - level, logger, message, file, line, function
        - batch / slot: processing context (if set)
        - exception: type, message and traceback lines (if present)
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "file": record.filename,
            "line": record.lineno,
            "function": record.funcName,
        }
        log_data.update(_context_fields(record))

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self._format_traceback(record.exc_info),
            }

        return json.dumps(log_data, ensure_ascii=False, default=str)

    def _format_traceback(self, exc_info: tuple) -> list[str]:
        if not exc_info or not exc_info[2]:
            return []

        result = []
        for line in traceback.format_exception(*exc_info):
            for subline in line.splitlines():
                if subline.strip():
                    result.append(subline)
        return result
