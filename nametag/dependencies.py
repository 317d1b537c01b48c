"""Process-wide collaborators and the per-session factory."""

from __future__ import annotations

from functools import lru_cache

from nametag.config import settings
from nametag.extraction.extractor import ClaudeNameExtractor, NameExtractor
from nametag.session import LiveSession, Presenter
from nametag.session_config import SessionConfig
from nametag.storage.store import PersonStore, build_person_store
from nametag.transcription.gateway import TranscriptionGateway, build_gateway


@lru_cache(maxsize=1)
def get_person_store() -> PersonStore:
    return build_person_store(settings)


@lru_cache(maxsize=1)
def get_gateway() -> TranscriptionGateway:
    return build_gateway(settings)


@lru_cache(maxsize=1)
def get_extractor() -> NameExtractor:
    return ClaudeNameExtractor()


def create_session(session_id: str, presenter: Presenter | None = None) -> LiveSession:
    """Build a fresh, isolated LiveSession over the shared collaborators."""
    return LiveSession(
        session_id=session_id,
        gateway=get_gateway(),
        store=get_person_store(),
        extractor=get_extractor(),
        config=SessionConfig.from_settings(settings),
        presenter=presenter,
    )
