"""Tests for the JSON log formatter."""

from __future__ import annotations

import json
import logging

from nametag.log_setup import build_formatter


def _record(message: str, **extra: str) -> logging.LogRecord:
    record = logging.LogRecord(
        name="nametag.session",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    def test_session_line_carries_session_id(self) -> None:
        line = json.loads(build_formatter().format(_record("Flushed", session_id="s-1")))

        assert line["session_id"] == "s-1"
        assert line["level"] == "INFO"
        assert line["logger"] == "nametag.session"
        assert line["message"] == "Flushed"
        assert "timestamp" in line

    def test_line_outside_session_has_null_session_id(self) -> None:
        line = json.loads(build_formatter().format(_record("Server started")))

        assert line["session_id"] is None

    def test_adapter_extra_reaches_the_formatter(self) -> None:
        records: list[logging.LogRecord] = []

        class Collect(logging.Handler):
            def emit(self, record: logging.LogRecord) -> None:
                records.append(record)

        logger = logging.getLogger("nametag.test_log_setup")
        logger.addHandler(Collect())
        logger.setLevel(logging.INFO)
        logging.LoggerAdapter(logger, {"session_id": "s-2"}).info("hello")

        line = json.loads(build_formatter().format(records[0]))
        assert line["session_id"] == "s-2"
        assert line["message"] == "hello"
