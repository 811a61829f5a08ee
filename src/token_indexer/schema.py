"""Table definitions and schema builder for the token index tables.

The host normally owns schema creation; this module gives tooling and tests
the same layout the upsert statements expect.
"""

from typing import TYPE_CHECKING, TypedDict

from .models import IndexTable
from .utils.logger import debug

if TYPE_CHECKING:
    import duckdb


class ColumnDef(TypedDict):
    name: str
    type: str
    constraints: str


class TableDef(TypedDict):
    name: str
    columns: list[ColumnDef]
    unique: list[str]


def index_table_def(table: IndexTable) -> TableDef:
    """Three-column layout with a unique (indexed key, account key) pair."""
    return {
        "name": table.table_name,
        "columns": [
            {"name": table.key_column, "type": "BLOB", "constraints": "NOT NULL"},
            {"name": "account_key", "type": "BLOB", "constraints": "NOT NULL"},
            {"name": "slot", "type": "BIGINT", "constraints": "NOT NULL"},
        ],
        "unique": [table.key_column, "account_key"],
    }


TOKEN_INDEX_TABLES: list[TableDef] = [index_table_def(table) for table in IndexTable]


class SchemaBuilder:
    """Builds database schema from table definitions."""

    def __init__(self, conn: "duckdb.DuckDBPyConnection"):
        self.conn = conn

    def create_all(self, tables: list[TableDef] = TOKEN_INDEX_TABLES) -> None:
        for table in tables:
            self.create_table(table)

    def create_table(self, table: TableDef) -> None:
        column_defs = []
        for col in table["columns"]:
            col_def = f"{col['name']} {col['type']}"
            if col["constraints"]:
                col_def += f" {col['constraints']}"
            column_defs.append(col_def)

        if table["unique"]:
            column_defs.append(f"UNIQUE ({', '.join(table['unique'])})")

        sql = f"""
            CREATE TABLE IF NOT EXISTS {table["name"]} (
                {", ".join(column_defs)}
            )
        """
        self.conn.execute(sql)
        debug(f"Created table {table['name']}")

