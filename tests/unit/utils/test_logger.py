"""Tests for the logging package and metrics helpers."""

import json
import logging

import pytest

from token_indexer.metrics import Measure, StatsRecorder
from token_indexer.utils.logger import exception, get_logger, info, log_context, setup_logging
from token_indexer.utils.logger.config import LogConfig, get_config
from token_indexer.utils.logger.context import ContextFilter, get_batch_id, get_slot
from token_indexer.utils.logger.formatters import HumanFormatter, JsonFormatter
from token_indexer.utils.logger.handlers import build_handlers


def make_record(msg: str = "flushed", **attrs) -> logging.LogRecord:
    record = logging.LogRecord(
        name="token_indexer.engine",
        level=logging.INFO,
        pathname="engine.py",
        lineno=12,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def log_file(tmp_path):
    """Route the indexer logger to a file for one test, then restore it."""

    def configure(json_format: bool = False):
        path = tmp_path / "indexer.log"
        setup_logging(LogConfig(console_enabled=False, log_file=path, json_format=json_format))
        return path

    yield configure
    setup_logging()


def read_lines(path) -> list[str]:
    for handler in get_logger().handlers:
        handler.flush()
    return path.read_text(encoding="utf-8").splitlines()


class TestLogContext:
    def test_context_values_restored_on_exit(self):
        with log_context(batch_id="abc12345", slot=99) as ctx:
            assert ctx == {"batch_id": "abc12345", "slot": 99}
            assert get_batch_id() == "abc12345"
            assert get_slot() == 99

        assert get_batch_id() is None
        assert get_slot() is None

    def test_auto_batch_id(self):
        with log_context(auto_batch_id=True) as ctx:
            assert len(ctx["batch_id"]) == 8

    def test_restored_after_exception(self):
        with pytest.raises(RuntimeError):
            with log_context(slot=5):
                raise RuntimeError("boom")
        assert get_slot() is None

    def test_filter_stamps_record(self):
        record = make_record()
        with log_context(batch_id="feedbeef", slot=3):
            assert ContextFilter().filter(record)
        assert record.batch_id == "feedbeef"
        assert record.slot == 3


class TestFormatters:
    def test_human_format_includes_context(self):
        line = HumanFormatter().format(make_record(batch_id="b1", slot=7))

        assert "| INFO  |" in line
        assert "engine.py:12" in line
        assert line.endswith("flushed [batch=b1 slot=7]")

    def test_json_format_is_single_line(self):
        line = JsonFormatter().format(make_record(slot=0))
        data = json.loads(line)

        assert "\n" not in line
        assert data["message"] == "flushed"
        assert data["logger"] == "token_indexer.engine"
        assert data["slot"] == 0
        assert "batch" not in data


class TestConfig:
    def test_library_defaults(self, monkeypatch):
        for name in ("DEBUG", "LOG_LEVEL", "LOG_CONSOLE", "LOG_FILE", "LOG_FORMAT"):
            monkeypatch.delenv(f"TOKEN_INDEXER_{name}", raising=False)

        config = get_config()

        assert config.level == logging.INFO
        assert config.console_enabled is True
        assert config.log_file is None
        assert [type(h) for h in build_handlers(config)] == [logging.StreamHandler]

    def test_env_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TOKEN_INDEXER_LOG_LEVEL", "error")
        monkeypatch.setenv("TOKEN_INDEXER_LOG_CONSOLE", "0")
        monkeypatch.setenv("TOKEN_INDEXER_LOG_FILE", str(tmp_path / "idx.log"))
        monkeypatch.setenv("TOKEN_INDEXER_LOG_FORMAT", "json")

        config = get_config()

        assert config.level == logging.ERROR
        assert config.console_enabled is False
        assert config.log_file == tmp_path / "idx.log"
        assert config.json_format is True

    def test_file_handler_uses_configured_format(self, tmp_path):
        text = build_handlers(LogConfig(console_enabled=False, log_file=tmp_path / "a.log"))
        lines = build_handlers(
            LogConfig(console_enabled=False, log_file=tmp_path / "b.log", json_format=True)
        )

        assert isinstance(text[0].formatter, HumanFormatter)
        assert isinstance(lines[0].formatter, JsonFormatter)
        for handler in text + lines:
            handler.close()

    def test_json_file_records_context(self, log_file):
        path = log_file(json_format=True)

        with log_context(batch_id="cafe0001", slot=12):
            info("flushed owner index")

        data = json.loads(read_lines(path)[-1])
        assert data["message"] == "flushed owner index"
        assert data["batch"] == "cafe0001"
        assert data["slot"] == 12

    def test_exception_helper_records_traceback(self, log_file):
        path = log_file(json_format=True)

        try:
            raise ValueError("expects 6 parameters, got 3")
        except ValueError:
            exception("flush failed")

        data = json.loads(read_lines(path)[-1])
        assert data["level"] == "ERROR"
        assert data["exception"]["type"] == "ValueError"
        assert any("expects 6 parameters" in line for line in data["exception"]["traceback"])

    def test_child_logger_name(self):
        assert get_logger("gateway").name == "token_indexer.gateway"


class TestMetrics:
    def test_measure_records_duration(self):
        with Measure("update-owner-index", rows=3) as m:
            pass
        assert m.duration_ms is not None
        assert m.duration_ms >= 0

    def test_measure_does_not_swallow_errors(self):
        with pytest.raises(ValueError):
            with Measure("prepare-owner-index"):
                raise ValueError("bad")

    def test_stats_snapshot_is_a_copy(self):
        recorder = StatsRecorder()
        recorder.incr("rows_queued", 4)
        snapshot = recorder.snapshot()
        recorder.incr("rows_queued")

        assert snapshot.rows_queued == 4
        assert recorder.snapshot().rows_queued == 5
