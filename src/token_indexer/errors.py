"""Exception hierarchy for the secondary index write path."""

from typing import Optional


class TokenIndexError(Exception):
    """Base class for token index failures."""


class SchemaError(TokenIndexError):
    """An upsert statement could not be prepared.

    Raised at startup for bad SQL or a missing table/column. This is a
    configuration problem and is never retried.
    """

    def __init__(self, msg: str, table: Optional[str] = None):
        super().__init__(msg)
        self.msg = msg
        self.table = table


class UpdateError(TokenIndexError):
    """An upsert failed at runtime (connectivity loss, constraint violation).

    Retry policy belongs to the caller.
    """

    def __init__(self, msg: str, table: Optional[str] = None, rows: int = 0):
        super().__init__(msg)
        self.msg = msg
        self.table = table
        self.rows = rows
