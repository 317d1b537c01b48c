"""Session configuration: provider enums and the SessionConfig dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nametag.config import Settings


class TranscriptionProvider(str, Enum):
    """Speech + diarization services the gateway can talk to."""

    OPENAI = "openai"
    ASSEMBLYAI = "assemblyai"


class StoreBackend(str, Enum):
    """Available PersonStore implementations."""

    MEMORY = "memory"
    FILE = "file"
    SUPABASE = "supabase"


@dataclass(frozen=True)
class SessionConfig:
    """Immutable per-session tuning for buffering, flushing and identity checks.

    Defaults mirror the live behaviour: flush every 10 s, keep 30 s of audio
    history, buffer the last 20 utterances and run a name check every 10th
    utterance as a safety net.
    """

    flush_interval_seconds: float = 10.0
    external_timeout_seconds: float = 10.0
    audio_history_seconds: float = 30.0
    voice_clip_ms: int = 5000
    sample_rate: int = 16000
    utterance_buffer_size: int = 20
    name_check_interval: int = 10
    attribution_window: int = 10
    transcript_max_utterances: int = 2000

    @classmethod
    def from_settings(cls, settings: Settings) -> SessionConfig:
        return cls(
            flush_interval_seconds=settings.flush_interval_seconds,
            external_timeout_seconds=settings.external_timeout_seconds,
            audio_history_seconds=settings.audio_history_seconds,
            voice_clip_ms=settings.voice_clip_ms,
            sample_rate=settings.sample_rate,
            utterance_buffer_size=settings.utterance_buffer_size,
            name_check_interval=settings.name_check_interval,
            attribution_window=settings.attribution_window,
            transcript_max_utterances=settings.transcript_max_utterances,
        )
