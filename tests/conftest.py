"""
Pytest configuration and shared fixtures for token_indexer tests.

This module provides:
- In-memory DuckDB fixtures with the index tables created
- Token account factories
"""

import sys
from pathlib import Path

import pytest

# Add src directory and repo root to path for imports
root_path = Path(__file__).parent.parent
sys.path.insert(0, str(root_path / "src"))
sys.path.insert(0, str(root_path))

import duckdb  # noqa: E402
from faker import Faker  # noqa: E402

from token_indexer.gateway import DatabaseGateway  # noqa: E402
from token_indexer.schema import SchemaBuilder  # noqa: E402
from token_indexer.settings import IndexerSettings  # noqa: E402

from tests.factories import TokenAccountFactory  # noqa: E402


@pytest.fixture
def fake() -> Faker:
    return Faker()


@pytest.fixture
def accounts(fake: Faker) -> TokenAccountFactory:
    """Factory for token account updates."""
    return TokenAccountFactory(fake)


@pytest.fixture
def conn():
    """In-memory DuckDB connection with both index tables."""
    connection = duckdb.connect(":memory:")
    SchemaBuilder(connection).create_all()
    yield connection
    connection.close()


@pytest.fixture
def gateway(conn) -> DatabaseGateway:
    return DatabaseGateway(connection=conn)


@pytest.fixture
def both_indexes() -> IndexerSettings:
    return IndexerSettings(
        batch_size=2, index_token_owner=True, index_token_mint=True, db_path=":memory:"
    )

