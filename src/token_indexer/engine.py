"""
Index engine: routes account updates into the owner and mint index tables.

Two write paths are offered for each update:

1. Buffered (queue_secondary_indexes): rows go to a per-table IndexBuffer and
   are written with one bulk upsert whenever a buffer holds exactly
   batch_size rows.

2. Immediate (update_token_owner_index / update_token_mint_index): one
   single-row upsert per matching token program, independent of the buffers.

A host that writes accounts one by one uses the immediate path and then calls
clear_buffered_indexes() so rows queued for the same accounts are not written
twice. Rows left in a partially filled buffer are only persisted by a later
flush; they are never written on their own.

Usage:
    gateway = DatabaseGateway(settings.db_path, settings=settings)
    engine = IndexEngine.create(gateway, settings)
    engine.queue_secondary_indexes(update)
"""

from typing import Callable, Iterable, Optional

import duckdb
from solders.pubkey import Pubkey

from .buffer import IndexBuffer
from .classifier import extract_mint, extract_owner
from .errors import UpdateError
from .gateway import DatabaseGateway, PreparedUpsert
from .metrics import IndexerStats, Measure, StatsRecorder
from .models import AccountUpdate, IndexTable, SecondaryIndexRow
from .settings import IndexerSettings
from .statements import build_bulk_upsert, build_single_upsert, params_for
from .utils.logger import debug, exception, info, log_context

_EXTRACTORS: dict[IndexTable, Callable[[AccountUpdate], Iterable[Pubkey]]] = {
    IndexTable.OWNER: extract_owner,
    IndexTable.MINT: extract_mint,
}


class IndexEngine:
    """Maintains spl_token_owner_index and spl_token_mint_index.

    Not thread-safe: one engine processes one update at a time. The gateway
    serializes access to the shared connection.
    """

    def __init__(
        self, gateway: DatabaseGateway, settings: Optional[IndexerSettings] = None
    ) -> None:
        self._settings = (settings or IndexerSettings()).validate()
        self._gateway = gateway
        self.batch_size = self._settings.batch_size

        self._enabled = {
            IndexTable.OWNER: self._settings.index_token_owner,
            IndexTable.MINT: self._settings.index_token_mint,
        }
        self._buffers = {
            table: IndexBuffer(table, self.batch_size) for table in IndexTable
        }
        self._single: dict[IndexTable, PreparedUpsert] = {}
        self._bulk: dict[IndexTable, PreparedUpsert] = {}
        self._stats = StatsRecorder()

    @classmethod
    def create(
        cls, gateway: DatabaseGateway, settings: Optional[IndexerSettings] = None
    ) -> "IndexEngine":
        """Build an engine and prepare its statements.

        Raises:
            SchemaError: A statement could not be prepared.
        """
        return cls(gateway, settings).prepare()

    def prepare(self) -> "IndexEngine":
        """Prepare single-row and bulk upserts for every enabled table.

        Must run before any update is accepted so schema problems surface at
        startup.

        Raises:
            SchemaError: A statement could not be prepared.
        """
        for table in self.enabled_tables:
            self._single[table] = self._gateway.prepare(build_single_upsert(table))
            self._bulk[table] = self._gateway.prepare(
                build_bulk_upsert(table, self.batch_size)
            )
        info(
            f"[IndexEngine] Prepared statements for "
            f"{[t.table_name for t in self.enabled_tables]} batch_size={self.batch_size}"
        )
        return self

    @property
    def enabled_tables(self) -> list[IndexTable]:
        return [table for table in IndexTable if self._enabled[table]]

    @property
    def is_prepared(self) -> bool:
        return all(
            table in self._single and table in self._bulk
            for table in self.enabled_tables
        )

    # =========================================================================
    # Buffered path
    # =========================================================================

    def queue_secondary_indexes(self, update: AccountUpdate) -> int:
        """Queue owner/mint index rows for bulk insert.

        Rows are added to every enabled buffer before any of them is
        flushed, and every full buffer is flushed even when another one
        fails.

        Returns:
            Number of rows queued.

        Raises:
            UpdateError: A triggered flush failed; its rows were dropped. When
                several flushes fail, the first failure is raised.
        """
        queued = 0
        with log_context(slot=update.slot):
            for table in self.enabled_tables:
                for key in _EXTRACTORS[table](update):
                    self._buffers[table].append(_row(key, update))
                    self._stats.incr("rows_queued")
                    queued += 1

            first_failure: Optional[UpdateError] = None
            for table in self.enabled_tables:
                try:
                    self._flush(table)
                except UpdateError as err:
                    if first_failure is None:
                        first_failure = err
            if first_failure is not None:
                raise first_failure
        return queued

    def bulk_insert_token_owner_index(self) -> int:
        """Flush the owner buffer if it is full. Returns rows written."""
        return self._flush(IndexTable.OWNER)

    def bulk_insert_token_mint_index(self) -> int:
        """Flush the mint buffer if it is full. Returns rows written."""
        return self._flush(IndexTable.MINT)

    def clear_buffered_indexes(self) -> None:
        """Drop buffered rows without writing them.

        Used once every account of the cycle was written through the
        immediate path, which makes the buffered rows redundant.
        """
        dropped = sum(buffer.clear() for buffer in self._buffers.values())
        self._stats.incr("buffers_cleared")
        debug(f"[IndexEngine] Cleared {dropped} buffered index rows")

    def pending_counts(self) -> dict[str, int]:
        return {table.label: len(buffer) for table, buffer in self._buffers.items()}

    def pending_rows(self, table: IndexTable) -> tuple[SecondaryIndexRow, ...]:
        return self._buffers[table].rows

    def _flush(self, table: IndexTable) -> int:
        buffer = self._buffers[table]
        if not buffer.is_full:
            return 0
        prepared = self._require(self._bulk, table)
        return buffer.flush_if_full(lambda rows: self._write_bulk(prepared, rows))

    def _write_bulk(self, prepared: PreparedUpsert, rows: list[SecondaryIndexRow]) -> None:
        table = prepared.statement.table
        with log_context(auto_batch_id=True):
            params = params_for(rows)
            try:
                with Measure(f"update-{table.label}-index", rows=len(rows)):
                    self._gateway.execute(prepared, params)
            except (duckdb.Error, ValueError) as err:
                msg = (
                    f"Failed to persist the update of the {table.table_name} "
                    f"to the database. Error: {err!r}"
                )
                exception(msg)
                self._stats.incr("flush_failures")
                self._stats.incr("rows_dropped", len(rows))
                raise UpdateError(msg, table=table.table_name, rows=len(rows)) from err
        self._stats.incr("flushes")
        self._stats.incr("rows_flushed", len(rows))

    # =========================================================================
    # Immediate path
    # =========================================================================

    def update_token_owner_index(self, update: AccountUpdate) -> int:
        """Upsert the owner index row for `update` right away.

        Returns:
            Number of upserts issued (0 if not a token account or disabled).

        Raises:
            UpdateError: The upsert failed.
        """
        return self._update_single(IndexTable.OWNER, update)

    def update_token_mint_index(self, update: AccountUpdate) -> int:
        """Upsert the mint index row for `update` right away.

        Returns:
            Number of upserts issued (0 if not a token account or disabled).

        Raises:
            UpdateError: The upsert failed.
        """
        return self._update_single(IndexTable.MINT, update)

    def _update_single(self, table: IndexTable, update: AccountUpdate) -> int:
        if not self._enabled[table]:
            return 0
        prepared = self._require(self._single, table)
        issued = 0
        with log_context(slot=update.slot):
            for key in _EXTRACTORS[table](update):
                row = _row(key, update)
                try:
                    self._gateway.execute(prepared, row.as_params())
                except (duckdb.Error, ValueError) as err:
                    msg = (
                        f"Failed to update the token {table.label} index to the "
                        f"database. Error: {err!r}"
                    )
                    exception(msg)
                    raise UpdateError(msg, table=table.table_name, rows=1) from err
                self._stats.incr("immediate_upserts")
                issued += 1
        return issued

    # =========================================================================
    # Helpers
    # =========================================================================

    def get_stats(self) -> IndexerStats:
        return self._stats.snapshot()

    def _require(
        self, statements: dict[IndexTable, PreparedUpsert], table: IndexTable
    ) -> PreparedUpsert:
        prepared = statements.get(table)
        if prepared is None:
            raise RuntimeError(
                f"{table.table_name} statements are not prepared; call prepare() first"
            )
        return prepared


def _row(key: Pubkey, update: AccountUpdate) -> SecondaryIndexRow:
    return SecondaryIndexRow(
        indexed_key=bytes(key), account_key=bytes(update.pubkey), slot=update.slot
    )
