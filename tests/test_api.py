"""Tests for the HTTP/WebSocket API (no external API keys required)."""

from __future__ import annotations

from unittest.mock import patch

from conftest import FakeExtractor, FakeGateway, seg
from fastapi.testclient import TestClient

from nametag.api.main import app
from nametag.api.models import IdentityEvent, PersonOut
from nametag.identity.models import ResolutionAction, ResolutionResult
from nametag.session import LiveSession, Presenter
from nametag.session_config import SessionConfig
from nametag.storage.models import PersonRecord
from nametag.storage.store import InMemoryPersonStore

client = TestClient(app)

PCM = b"\x01\x00" * 1600


def test_health() -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


class TestMessageModels:
    def test_person_out_hides_voice_reference(self) -> None:
        record = PersonRecord(name="Alice", speaker_id="A", voice_reference="data:secret")
        out = PersonOut.from_record(record).model_dump(mode="json")
        assert out["has_voice_profile"] is True
        assert "voice_reference" not in out
        assert out["last_conversation"] is None

    def test_identity_event_serializes_action(self) -> None:
        result = ResolutionResult(
            ResolutionAction.SPEAKER_RECOGNIZED, "B", PersonRecord(name="Bob", speaker_id="B")
        )
        event = IdentityEvent.from_result(result).model_dump(mode="json")
        assert event["type"] == "speaker_recognized"
        assert event["speaker"] == "B"
        assert event["person"]["name"] == "Bob"


class TestSessionSocket:
    def _factory(self, store: InMemoryPersonStore, gateway: FakeGateway, extractor: FakeExtractor):
        def create_session(session_id: str, presenter: Presenter | None = None) -> LiveSession:
            return LiveSession(
                session_id,
                gateway,
                store,
                extractor,
                config=SessionConfig(flush_interval_seconds=3600),
                presenter=presenter,
            )

        return create_session

    def test_end_message_flushes_and_reports(self) -> None:
        store = InMemoryPersonStore()
        gateway = FakeGateway([[seg("A", "Hi, I'm John Smith")]])
        extractor = FakeExtractor()
        extractor.returns(("John Smith", "high"))

        with patch(
            "nametag.dependencies.create_session",
            side_effect=self._factory(store, gateway, extractor),
        ):
            with client.websocket_connect("/ws/session?session_id=t1") as ws:
                ws.send_bytes(PCM)
                ws.send_text("end")
                event = ws.receive_json()
                ended = ws.receive_json()

        assert event["type"] == "new_person_identified"
        assert event["speaker"] == "A"
        assert event["person"]["name"] == "John Smith"
        assert ended["type"] == "session_ended"
        assert ended["participants"] == ["John Smith"]
        assert ended["failed"] == []

        john = store.find_by_name("John Smith")
        assert john is not None
        assert len(john.conversation_history) == 1
