"""Data models for transcription results."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class TranscriptSegment:
    """Uniform representation of a diarized transcript segment.

    ``speaker`` is either an anonymous per-session placeholder ("A", "B",
    "Unknown") or, when the service matched a supplied voice reference, the
    person's name. ``speaker_is_known`` tells the two apart.
    """

    speaker: str
    text: str
    start_time: float | None = None
    end_time: float | None = None
    speaker_is_known: bool = False


@dataclass(frozen=True)
class KnownSpeaker:
    """A stored voice fingerprint the service can match against."""

    name: str
    voice_reference: str  # base64 WAV data URL
