from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # API Keys
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    assemblyai_api_key: str = ""  # Only needed when transcription_provider="assemblyai"

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""

    # Collaborators
    llm_model: str = "claude-sonnet-4-20250514"
    transcription_provider: str = "openai"
    transcription_model: str = "gpt-4o-transcribe-diarize"
    assemblyai_speech_model: str = "universal-3-pro"
    store_backend: str = "file"
    data_dir: str = "./data"

    # Session timing
    flush_interval_seconds: float = 10.0
    external_timeout_seconds: float = 10.0
    audio_history_seconds: float = 30.0
    voice_clip_ms: int = 5000
    sample_rate: int = 16000

    # Identity heuristics
    utterance_buffer_size: int = 20
    name_check_interval: int = 10
    attribution_window: int = 10
    transcript_max_utterances: int = 2000

    # App config
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
