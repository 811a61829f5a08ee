"""
Pending row buffer for one index table.

Rows accumulate until the buffer holds exactly batch_size of them, then the
whole buffer is written with one bulk upsert. The buffer is emptied whether
the write succeeds or fails; failed rows are dropped, not retried.

Each (indexed key, account key) pair appears at most once. A second row for
a pair already buffered replaces it in place when its slot is higher and is
dropped otherwise, so a bulk upsert never carries the same pair twice.

A buffer that never fills is not written. The owner of the buffer either
clears it (when the same accounts went through the single-row path) or keeps
feeding it.
"""

from typing import Callable, Dict, List, Tuple

from .models import IndexTable, SecondaryIndexRow

RowKey = Tuple[bytes, bytes]


class IndexBuffer:
    """Ordered, bounded accumulator of unique SecondaryIndexRow for one table."""

    def __init__(self, table: IndexTable, batch_size: int) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be a positive integer, got {batch_size!r}")
        self.table = table
        self.batch_size = batch_size
        # Insertion-ordered; replacing a value keeps its position
        self._rows: Dict[RowKey, SecondaryIndexRow] = {}

    def __len__(self) -> int:
        return len(self._rows)

    @property
    def rows(self) -> tuple[SecondaryIndexRow, ...]:
        return tuple(self._rows.values())

    @property
    def is_full(self) -> bool:
        return len(self._rows) == self.batch_size

    def append(self, row: SecondaryIndexRow) -> bool:
        """Add a row, merging it with a buffered row for the same pair.

        Returns True when the buffer is now full.

        Raises:
            OverflowError: The buffer is already full and was not flushed.
        """
        key = (row.indexed_key, row.account_key)
        existing = self._rows.get(key)
        if existing is not None:
            if row.slot > existing.slot:
                self._rows[key] = row
            return self.is_full

        if self.is_full:
            raise OverflowError(
                f"{self.table.table_name} buffer already holds {self.batch_size} rows"
            )
        self._rows[key] = row
        return self.is_full

    def drain(self) -> List[SecondaryIndexRow]:
        """Remove and return all pending rows."""
        rows = list(self._rows.values())
        self._rows = {}
        return rows

    def clear(self) -> int:
        """Drop all pending rows without writing them. Returns the count dropped."""
        dropped = len(self._rows)
        self._rows = {}
        return dropped

    def flush_if_full(self, write: Callable[[List[SecondaryIndexRow]], None]) -> int:
        """Write the buffer with `write` if it holds exactly batch_size rows.

        The buffer is empty afterwards even when `write` raises; the
        exception propagates to the caller.

        Returns:
            Number of rows handed to `write` (0 if the buffer was not full).
        """
        if not self.is_full:
            return 0
        rows = self.drain()
        write(rows)
        return len(rows)
