"""Tests for logging setup helpers."""
import logging

import pytest

from config.settings import settings
from util.logger import ColoredFormatter, TEXT_FMT, _file_handler
from util.timing import timed


def _record(level=logging.INFO, msg="publish.ok id=%s") -> logging.LogRecord:
    return logging.LogRecord("tafcha", level, __file__, 1, msg, ("abc",), None)


class TestColoredFormatter:
    def test_colours_level_without_touching_record(self):
        record = _record(logging.WARNING)
        out = ColoredFormatter(TEXT_FMT).format(record)

        assert "\033[33mWARNING\033[0m" in out
        assert "publish.ok id=abc" in out
        assert record.levelname == "WARNING"


class TestFileHandler:
    def test_writes_plain_lines_to_log_dir(self, tmp_path):
        cfg = settings.model_copy(
            update={"LOG_DIR": str(tmp_path / "logs"), "LOG_FILE_NAME": "t.log"}
        )
        handler = _file_handler(cfg, logging.INFO)
        try:
            handler.emit(_record())
        finally:
            handler.close()

        text = (tmp_path / "logs" / "t.log").read_text(encoding="utf-8")
        assert "INFO tafcha - publish.ok id=abc" in text
        assert "\033[" not in text


class TestTimed:
    def test_emits_done_line(self, caplog):
        log = logging.getLogger("tafcha.test")
        with caplog.at_level(logging.DEBUG, logger="tafcha.test"):
            with timed(log, "store.get", op="get"):
                pass
        assert any(
            r.getMessage().startswith("store.get.done ms=") and "op=get" in r.getMessage()
            for r in caplog.records
        )

    def test_failure_is_logged_and_reraised(self, caplog):
        log = logging.getLogger("tafcha.test")
        with caplog.at_level(logging.DEBUG, logger="tafcha.test"):
            with pytest.raises(RuntimeError):
                with timed(log, "store.create"):
                    raise RuntimeError("boom")
        failed = [r for r in caplog.records if r.getMessage().startswith("store.create.failed")]
        assert failed and failed[0].levelno == logging.WARNING
