"""
Token secondary index writer.

Keeps spl_token_owner_index and spl_token_mint_index current for SPL Token
and Token-2022 accounts.

Structure:
- models.py: AccountUpdate, SecondaryIndexRow, IndexTable
- classifier.py: token account layouts and key extraction
- statements.py: upsert SQL builder
- buffer.py: pending rows with exact-size flush
- gateway.py: guarded DuckDB connection
- engine.py: buffered and immediate index updates
"""

from .engine import IndexEngine
from .errors import SchemaError, TokenIndexError, UpdateError
from .gateway import DatabaseGateway
from .models import AccountUpdate, IndexTable, SecondaryIndexRow
from .settings import DEFAULT_ACCOUNTS_INSERT_BATCH_SIZE, IndexerSettings

__all__ = [
    "IndexEngine",
    "DatabaseGateway",
    "AccountUpdate",
    "IndexTable",
    "SecondaryIndexRow",
    "IndexerSettings",
    "DEFAULT_ACCOUNTS_INSERT_BATCH_SIZE",
    "TokenIndexError",
    "SchemaError",
    "UpdateError",
]
