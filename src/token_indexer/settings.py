"""
Settings management for the token indexer
"""

import json
import os
from dataclasses import dataclass, field, asdict
from typing import Optional

CONFIG_DIR = os.path.expanduser("~/.config/token-indexer")
CONFIG_FILE = os.path.join(CONFIG_DIR, "settings.json")
DEFAULT_DB_PATH = os.path.join(CONFIG_DIR, "accounts.duckdb")

# Rows per bulk upsert statement when batch_size is not configured
DEFAULT_ACCOUNTS_INSERT_BATCH_SIZE = 10


@dataclass
class IndexerSettings:
    """Indexer settings"""

    # Rows per bulk upsert; buffers flush when they hold exactly this many
    batch_size: int = DEFAULT_ACCOUNTS_INSERT_BATCH_SIZE

    # Maintain spl_token_owner_index
    index_token_owner: bool = False

    # Maintain spl_token_mint_index
    index_token_mint: bool = False

    # DuckDB database file (":memory:" for an in-process database)
    db_path: str = field(default=DEFAULT_DB_PATH)

    def validate(self) -> "IndexerSettings":
        """Check values; returns self so calls can be chained.

        Raises:
            ValueError: If batch_size is not a positive integer.
        """
        if (
            isinstance(self.batch_size, bool)
            or not isinstance(self.batch_size, int)
            or self.batch_size < 1
        ):
            raise ValueError(
                f"batch_size must be a positive integer, got {self.batch_size!r}"
            )
        return self

    def save(self, path: str = CONFIG_FILE) -> None:
        """Save settings to config file"""
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w") as f:
            json.dump(asdict(self), f, indent=2)

    @classmethod
    def load(cls, path: str = CONFIG_FILE) -> "IndexerSettings":
        """Load settings from config file, or return defaults"""
        if not os.path.exists(path):
            return cls()

        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (OSError, ValueError):
            return cls()

        if not isinstance(data, dict):
            return cls()

        # Filter to only known fields (ignore obsolete settings)
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered_data = {k: v for k, v in data.items() if k in valid_fields}

        # An explicit null means "use the default"
        if filtered_data.get("batch_size") is None:
            filtered_data.pop("batch_size", None)

        return cls(**filtered_data)


# Global settings instance
_settings: Optional[IndexerSettings] = None


def get_settings() -> IndexerSettings:
    """Get the global settings instance"""
    global _settings
    if _settings is None:
        _settings = IndexerSettings.load()
    return _settings
