"""Tests for call_with_timeout."""

from __future__ import annotations

import threading
import time

import pytest

from nametag.bounded import call_with_timeout
from nametag.exceptions import TransientServiceError


class TestCallWithTimeout:
    def test_returns_value(self) -> None:
        assert call_with_timeout("adder", lambda a, b: a + b, 2, 3, timeout=1.0) == 5

    def test_overrun_raises_transient_error(self) -> None:
        started = time.monotonic()
        with pytest.raises(TransientServiceError) as exc_info:
            call_with_timeout("summarization", time.sleep, 0.5, timeout=0.05)

        assert exc_info.value.service == "summarization"
        assert time.monotonic() - started < 0.4

    def test_errors_propagate_unchanged(self) -> None:
        def boom() -> None:
            raise ValueError("bad payload")

        with pytest.raises(ValueError, match="bad payload"):
            call_with_timeout("name-extraction", boom, timeout=1.0)

    def test_no_timeout_runs_inline(self) -> None:
        assert call_with_timeout("inline", threading.get_ident) == threading.get_ident()

    def test_bounded_call_runs_on_worker(self) -> None:
        worker = call_with_timeout("worker", threading.get_ident, timeout=1.0)
        assert worker != threading.get_ident()
