"""
DuckDB gateway for the index tables.

Owns a single connection. Every prepare/execute holds the gateway lock for
the duration of the call, so at most one statement is in flight per gateway.
"""

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

import duckdb

from .errors import SchemaError
from .metrics import Measure
from .statements import UpsertStatement
from .utils.logger import debug, error, info


@dataclass(frozen=True)
class PreparedUpsert:
    """An upsert statement that was bound against the live schema.

    Binding only validates the SQL; execution sends the statement text with
    its parameters.
    """

    statement: UpsertStatement

    @property
    def table_name(self) -> str:
        return self.statement.table.table_name


class DatabaseGateway:
    """Guarded DuckDB connection exposing prepare() and execute().

    Usage:
        gateway = DatabaseGateway(db_path)
        prepared = gateway.prepare(build_single_upsert(IndexTable.OWNER))
        gateway.execute(prepared, [owner, account, slot])
    """

    def __init__(
        self,
        db_path: Optional[Path | str] = None,
        connection: Optional[duckdb.DuckDBPyConnection] = None,
        settings: Any = None,
    ):
        """
        Args:
            db_path: DuckDB database file, or ":memory:".
            connection: Existing connection to use instead of opening db_path.
            settings: Configuration echoed in schema error messages.
        """
        self._db_path = str(db_path) if db_path is not None else ":memory:"
        self._conn = connection
        self._owns_connection = connection is None
        self._settings = settings
        self._lock = threading.Lock()

    @property
    def db_path(self) -> str:
        return self._db_path

    def connect(self) -> duckdb.DuckDBPyConnection:
        """Get or open the connection (thread-safe)."""
        with self._lock:
            return self._connect_locked()

    def _connect_locked(self) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            self._conn = duckdb.connect(self._db_path)
            info(f"[Gateway] Connected to {self._db_path}")
        return self._conn

    def close(self) -> None:
        """Close the connection if this gateway opened it."""
        with self._lock:
            if self._conn is not None and self._owns_connection:
                self._conn.close()
            self._conn = None

    def prepare(self, statement: UpsertStatement) -> PreparedUpsert:
        """Bind `statement` against the schema, then release the binding.

        Raises:
            SchemaError: The SQL is malformed or the table/columns are missing.
        """
        table = statement.table.table_name
        name = f"{statement.table.label}_upsert_check"
        with self._lock:
            conn = self._connect_locked()
            debug(f"[Gateway] Preparing {name}: {statement.sql}")
            try:
                with Measure(f"prepare-{statement.table.label}-index"):
                    conn.execute(f"PREPARE {name} AS {statement.sql}")
            except duckdb.Error as err:
                msg = (
                    f"Error in preparing for the {table} index update database: {err} "
                    f"db_path: {self._db_path!r} config: {self._settings!r}"
                )
                error(msg)
                raise SchemaError(msg, table=table) from err
            conn.execute(f"DEALLOCATE {name}")
        return PreparedUpsert(statement=statement)

    def execute(self, prepared: PreparedUpsert, params: Sequence[Any]) -> int:
        """Run a prepared upsert and return the affected row count.

        Raises:
            ValueError: params does not match the statement's parameter count.
            duckdb.Error: The database rejected the statement.
        """
        expected = prepared.statement.param_count
        if len(params) != expected:
            raise ValueError(
                f"{prepared.table_name} upsert of {prepared.statement.row_count} rows "
                f"expects {expected} parameters, got {len(params)}"
            )
        with self._lock:
            result = self._connect_locked().execute(prepared.statement.sql, list(params))
            row = result.fetchone()
        return int(row[0]) if row and row[0] is not None else 0
