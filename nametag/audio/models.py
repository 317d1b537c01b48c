"""Data models for buffered audio."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AudioChunk:
    """Raw PCM bytes as received from the device, stamped at ingestion."""

    data: bytes
    timestamp: float  # seconds since the epoch


@dataclass(frozen=True)
class AudioUnit:
    """One flush worth of audio, concatenated and ready for transcription."""

    pcm: bytes
    chunk_count: int
    started_at: float
    ended_at: float

    @property
    def size(self) -> int:
        return len(self.pcm)
