"""
Upsert statement builder for the owner and mint index tables.

Every index table has exactly three columns (indexed key, account key, slot)
and a unique constraint on (indexed key, account key). A conflicting insert
only moves the slot forward:

    ON CONFLICT (<key>, account_key) DO UPDATE SET slot = excluded.slot
    WHERE <table>.slot < excluded.slot

so an older update arriving late is a no-op and the stored slot is always the
highest one seen for the pair.

The builders are pure: they return an UpsertStatement descriptor and never
touch a connection.
"""

from dataclasses import dataclass
from typing import Iterable

from .models import IndexTable, SecondaryIndexRow

TOKEN_INDEX_COLUMN_COUNT = 3


@dataclass(frozen=True)
class UpsertStatement:
    """Parameterized upsert SQL plus the shape of its parameter list."""

    table: IndexTable
    sql: str
    row_count: int

    @property
    def param_count(self) -> int:
        return self.row_count * TOKEN_INDEX_COLUMN_COUNT

    @property
    def is_bulk(self) -> bool:
        return self.row_count > 1


def values_placeholders(row_count: int) -> list[str]:
    """Row-major placeholder tuples: row i uses $3i+1, $3i+2, $3i+3."""
    tuples = []
    for row in range(row_count):
        base = row * TOKEN_INDEX_COLUMN_COUNT
        tuples.append(f"(${base + 1}, ${base + 2}, ${base + 3})")
    return tuples


def _upsert_sql(table: IndexTable, row_count: int) -> str:
    name, key = table.table_name, table.key_column
    values = ", ".join(values_placeholders(row_count))
    return (
        f"INSERT INTO {name} ({key}, account_key, slot) "
        f"VALUES {values} "
        f"ON CONFLICT ({key}, account_key) "
        f"DO UPDATE SET slot = excluded.slot "
        f"WHERE {name}.slot < excluded.slot"
    )


def build_single_upsert(table: IndexTable) -> UpsertStatement:
    """Upsert statement for one row of `table`."""
    return UpsertStatement(table=table, sql=_upsert_sql(table, 1), row_count=1)


def build_bulk_upsert(table: IndexTable, batch_size: int) -> UpsertStatement:
    """Upsert statement inserting exactly `batch_size` rows into `table`.

    Raises:
        ValueError: If batch_size is not a positive integer.
    """
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size < 1:
        raise ValueError(f"batch_size must be a positive integer, got {batch_size!r}")
    return UpsertStatement(
        table=table, sql=_upsert_sql(table, batch_size), row_count=batch_size
    )


def params_for(rows: Iterable[SecondaryIndexRow]) -> list:
    """Flatten rows into a row-major parameter list."""
    params: list = []
    for row in rows:
        params.extend(row.as_params())
    return params
