"""
Tests for indexer settings.
"""

import json

import pytest

from token_indexer import settings
from token_indexer.settings import (
    DEFAULT_ACCOUNTS_INSERT_BATCH_SIZE,
    IndexerSettings,
    get_settings,
)


class TestDefaults:
    def test_defaults(self):
        s = IndexerSettings()

        assert s.batch_size == DEFAULT_ACCOUNTS_INSERT_BATCH_SIZE == 10
        assert s.index_token_owner is False
        assert s.index_token_mint is False

    @pytest.mark.parametrize("batch_size", [0, -3, "10", 1.5, True])
    def test_validate_rejects_bad_batch_size(self, batch_size):
        with pytest.raises(ValueError, match="batch_size"):
            IndexerSettings(batch_size=batch_size).validate()

    def test_validate_returns_self(self):
        s = IndexerSettings(batch_size=3)
        assert s.validate() is s


class TestLoadSave:
    def test_round_trip(self, tmp_path):
        path = str(tmp_path / "cfg" / "settings.json")
        IndexerSettings(batch_size=25, index_token_owner=True, db_path="x.duckdb").save(path)

        loaded = IndexerSettings.load(path)

        assert loaded == IndexerSettings(
            batch_size=25, index_token_owner=True, db_path="x.duckdb"
        )

    @pytest.mark.parametrize(
        "content,expected_batch",
        [
            ({"batch_size": None, "index_token_mint": True}, DEFAULT_ACCOUNTS_INSERT_BATCH_SIZE),
            ({"index_token_mint": True, "obsolete": 1}, DEFAULT_ACCOUNTS_INSERT_BATCH_SIZE),
            ({"batch_size": 4, "index_token_mint": True}, 4),
        ],
    )
    def test_missing_or_null_batch_size_uses_default(self, tmp_path, content, expected_batch):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps(content))

        loaded = IndexerSettings.load(str(path))

        assert loaded.batch_size == expected_batch
        assert loaded.index_token_mint is True

    @pytest.mark.parametrize("raw", ["{not json", "[1, 2]"])
    def test_unreadable_file_gives_defaults(self, tmp_path, raw):
        path = tmp_path / "settings.json"
        path.write_text(raw)

        assert IndexerSettings.load(str(path)) == IndexerSettings()

    def test_missing_file_gives_defaults(self, tmp_path):
        assert IndexerSettings.load(str(tmp_path / "absent.json")) == IndexerSettings()


class TestGlobalSettings:
    def test_get_settings_is_cached(self, monkeypatch):
        monkeypatch.setattr(settings, "_settings", None)
        monkeypatch.setattr(
            IndexerSettings, "load", classmethod(lambda cls: cls(batch_size=7))
        )

        first = get_settings()
        assert first.batch_size == 7
        assert get_settings() is first
