"""Tests for AudioIngestBuffer flushing, rolling history and clip extraction."""

from __future__ import annotations

import io
import wave

import pytest
from conftest import FakeClock

from nametag.audio.buffer import AudioIngestBuffer
from nametag.audio.wav import DATA_URL_PREFIX, encode_wav, from_data_url, to_data_url


def _clip_frames(data_url: str) -> bytes:
    with wave.open(io.BytesIO(from_data_url(data_url)), "rb") as wav:
        return wav.readframes(wav.getnframes())


class TestFlush:
    def test_empty_flush_returns_none(self) -> None:
        buffer = AudioIngestBuffer(clock=FakeClock())
        assert buffer.flush() is None

    def test_flush_concatenates_in_order(self) -> None:
        clock = FakeClock()
        buffer = AudioIngestBuffer(clock=clock)
        buffer.ingest(b"\x01\x00")
        clock.advance(0.1)
        buffer.ingest(b"\x02\x00")

        unit = buffer.flush()

        assert unit is not None
        assert unit.pcm == b"\x01\x00\x02\x00"
        assert unit.chunk_count == 2
        assert unit.ended_at - unit.started_at == pytest.approx(0.1)

    def test_flush_swaps_buffer(self) -> None:
        """Audio ingested after a flush belongs to the next unit only."""
        buffer = AudioIngestBuffer(clock=FakeClock())
        buffer.ingest(b"aa")
        first = buffer.flush()
        buffer.ingest(b"bb")
        second = buffer.flush()

        assert first is not None and first.pcm == b"aa"
        assert second is not None and second.pcm == b"bb"
        assert buffer.flush() is None

    def test_flush_does_not_clear_history(self) -> None:
        buffer = AudioIngestBuffer(clock=FakeClock())
        buffer.ingest(b"aa")
        buffer.flush()
        assert len(buffer.history) == 1


class TestRollingHistory:
    def test_old_chunks_evicted_on_ingest(self) -> None:
        clock = FakeClock()
        buffer = AudioIngestBuffer(history_seconds=30.0, clock=clock)
        buffer.ingest(b"old")
        clock.advance(31)
        buffer.ingest(b"new")

        assert [c.data for c in buffer.history] == [b"new"]

    def test_window_never_older_than_history_seconds(self) -> None:
        clock = FakeClock()
        buffer = AudioIngestBuffer(history_seconds=30.0, clock=clock)
        for _ in range(100):
            buffer.ingest(b"\x00\x00")
            clock.advance(0.5)
            oldest = buffer.history[0].timestamp
            assert clock() - 0.5 - oldest <= 30.0

    def test_eviction_independent_of_flush(self) -> None:
        """Pending audio is kept for flushing even when it ages out of history."""
        clock = FakeClock()
        buffer = AudioIngestBuffer(history_seconds=30.0, clock=clock)
        buffer.ingest(b"aa")
        clock.advance(40)
        buffer.ingest(b"bb")

        assert len(buffer.history) == 1
        unit = buffer.flush()
        assert unit is not None and unit.pcm == b"aabb"


class TestExtractRecentClip:
    def test_empty_history_returns_none(self) -> None:
        buffer = AudioIngestBuffer(clock=FakeClock())
        assert buffer.extract_recent_clip(7000) is None

    def test_nothing_recent_returns_none(self) -> None:
        clock = FakeClock()
        buffer = AudioIngestBuffer(clock=clock)
        buffer.ingest(b"\x01\x00")
        clock.advance(10)
        assert buffer.extract_recent_clip(7000) is None

    def test_only_chunks_inside_duration(self) -> None:
        clock = FakeClock()
        buffer = AudioIngestBuffer(clock=clock)
        buffer.ingest(b"\x01\x00")  # T-10s
        clock.advance(3)
        buffer.ingest(b"\x02\x00")  # T-7s, on the boundary
        clock.advance(4)
        buffer.ingest(b"\x03\x00")  # T-3s
        clock.advance(3)

        clip = buffer.extract_recent_clip(7000)

        assert clip is not None
        assert clip.startswith(DATA_URL_PREFIX)
        assert _clip_frames(clip) == b"\x02\x00\x03\x00"

    def test_clip_uses_configured_sample_rate(self) -> None:
        buffer = AudioIngestBuffer(sample_rate=8000, clock=FakeClock())
        buffer.ingest(b"\x00\x00" * 10)
        clip = buffer.extract_recent_clip(1000)
        assert clip is not None
        with wave.open(io.BytesIO(from_data_url(clip)), "rb") as wav:
            assert wav.getframerate() == 8000
            assert wav.getnchannels() == 1
            assert wav.getsampwidth() == 2


class TestWav:
    def test_encode_wav_header(self) -> None:
        wav_bytes = encode_wav(b"\x00\x00" * 4, 16000)
        assert wav_bytes[:4] == b"RIFF"
        assert wav_bytes[8:12] == b"WAVE"
        assert len(wav_bytes) == 44 + 8

    def test_data_url_accepts_bare_base64(self) -> None:
        wav_bytes = encode_wav(b"\x01\x02", 16000)
        url = to_data_url(wav_bytes)
        assert from_data_url(url) == wav_bytes
        assert from_data_url(url.split(",", 1)[1]) == wav_bytes
