"""
Data models for the token secondary indexes.

Uses dataclasses for type safety and clean data structures.
"""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class AccountUpdate:
    """Snapshot of one account state change delivered by the event source.

    Attributes:
        pubkey: Account address (32 bytes).
        owner: Id of the program owning the account (32 bytes).
        data: Raw account payload.
        slot: Version number of this state; larger is newer.
    """

    pubkey: bytes
    owner: bytes
    data: bytes
    slot: int


@dataclass(frozen=True)
class SecondaryIndexRow:
    """One row of an owner or mint index table."""

    indexed_key: bytes
    account_key: bytes
    slot: int

    def as_params(self) -> tuple[bytes, bytes, int]:
        """Values in column order: indexed key, account key, slot."""
        return (self.indexed_key, self.account_key, self.slot)


class IndexTable(Enum):
    """The two derived index tables and their indexed-key column."""

    OWNER = ("spl_token_owner_index", "owner_key")
    MINT = ("spl_token_mint_index", "mint_key")

    def __init__(self, table_name: str, key_column: str):
        self.table_name = table_name
        self.key_column = key_column

    @property
    def label(self) -> str:
        return self.name.lower()
