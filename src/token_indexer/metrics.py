"""Timing and counters for the index write path.

Measure wraps a block with a perf_counter timer and logs the duration;
IndexerStats keeps running counters that callers can snapshot.
"""

import threading
import time
from dataclasses import dataclass, replace
from typing import Optional

from .utils.logger import debug, warn

# Operations slower than this are logged as warnings
SLOW_OPERATION_MS = 500.0


class Measure:
    """Context manager timing one operation.

    Usage:
        with Measure("update-index", rows=10) as m:
            gateway.execute(...)
        m.duration_ms
    """

    def __init__(self, name: str, rows: int = 0, slow_ms: float = SLOW_OPERATION_MS):
        self.name = name
        self.rows = rows
        self.slow_ms = slow_ms
        self.duration_ms: Optional[float] = None
        self._start = 0.0

    def __enter__(self) -> "Measure":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.duration_ms = (time.perf_counter() - self._start) * 1000
        status = "failed" if exc_type else "ok"
        msg = f"[METRIC] {self.name} {status} in {self.duration_ms:.2f}ms rows={self.rows}"
        if self.duration_ms > self.slow_ms:
            warn(f"{msg} (slow)")
        else:
            debug(msg)


@dataclass
class IndexerStats:
    """Counters for the index engine.

    Attributes:
        rows_queued: Rows appended to a pending buffer.
        rows_flushed: Rows written by successful bulk upserts.
        flushes: Successful bulk upserts.
        flush_failures: Bulk upserts that failed (their rows were dropped).
        rows_dropped: Rows discarded by failed bulk upserts.
        immediate_upserts: Successful single-row upserts.
        buffers_cleared: Calls to clear the pending buffers.
    """

    rows_queued: int = 0
    rows_flushed: int = 0
    flushes: int = 0
    flush_failures: int = 0
    rows_dropped: int = 0
    immediate_upserts: int = 0
    buffers_cleared: int = 0


class StatsRecorder:
    """Thread-safe holder for IndexerStats."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stats = IndexerStats()

    def incr(self, field_name: str, amount: int = 1) -> None:
        with self._lock:
            setattr(self._stats, field_name, getattr(self._stats, field_name) + amount)

    def snapshot(self) -> IndexerStats:
        with self._lock:
            return replace(self._stats)
