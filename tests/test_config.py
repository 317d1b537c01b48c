"""Tests for Settings, SessionConfig and the backend/provider enums."""

from __future__ import annotations

import pytest

from nametag.config import Settings
from nametag.session_config import SessionConfig, StoreBackend, TranscriptionProvider

# ---------------------------------------------------------------------------
# Enum tests
# ---------------------------------------------------------------------------


class TestTranscriptionProvider:
    def test_values(self) -> None:
        assert TranscriptionProvider.OPENAI.value == "openai"
        assert TranscriptionProvider.ASSEMBLYAI.value == "assemblyai"

    def test_from_string(self) -> None:
        assert TranscriptionProvider("openai") is TranscriptionProvider.OPENAI

    def test_invalid_raises(self) -> None:
        with pytest.raises(ValueError):
            TranscriptionProvider("whisper-local")

    def test_is_str_subclass(self) -> None:
        """Enum values behave as plain strings for JSON serialization."""
        assert isinstance(TranscriptionProvider.OPENAI, str)


class TestStoreBackend:
    def test_values(self) -> None:
        assert [b.value for b in StoreBackend] == ["memory", "file", "supabase"]

    def test_invalid_raises(self) -> None:
        with pytest.raises(ValueError):
            StoreBackend("sqlite")


# ---------------------------------------------------------------------------
# SessionConfig tests
# ---------------------------------------------------------------------------


class TestSessionConfig:
    def test_defaults(self) -> None:
        cfg = SessionConfig()
        assert cfg.flush_interval_seconds == 10.0
        assert cfg.audio_history_seconds == 30.0
        assert cfg.voice_clip_ms == 5000
        assert cfg.transcript_max_utterances == 2000
        assert cfg.utterance_buffer_size == 20
        assert cfg.name_check_interval == 10

    def test_immutable(self) -> None:
        cfg = SessionConfig()
        with pytest.raises(AttributeError):
            cfg.flush_interval_seconds = 1.0  # type: ignore[misc]

    def test_from_settings(self) -> None:
        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
            flush_interval_seconds=5.0,
            utterance_buffer_size=40,
            transcript_max_utterances=500,
        )
        cfg = SessionConfig.from_settings(settings)
        assert cfg.flush_interval_seconds == 5.0
        assert cfg.utterance_buffer_size == 40
        assert cfg.transcript_max_utterances == 500
        assert cfg.attribution_window == 10


class TestSettings:
    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STORE_BACKEND", "memory")
        monkeypatch.setenv("EXTERNAL_TIMEOUT_SECONDS", "2.5")
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.store_backend == "memory"
        assert settings.external_timeout_seconds == 2.5

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("TRANSCRIPTION_PROVIDER", raising=False)
        monkeypatch.delenv("LLM_MODEL", raising=False)
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.transcription_provider == "openai"
        assert settings.transcription_model == "gpt-4o-transcribe-diarize"
        assert settings.llm_model.startswith("claude")
