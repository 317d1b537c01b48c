"""Pydantic message schemas for the session WebSocket."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from nametag.identity.models import ResolutionAction, ResolutionResult, SessionSummary
from nametag.storage.models import ConversationEntry, PersonRecord


class ConversationEntryOut(BaseModel):
    """One past conversation with a person."""

    date: datetime
    summary: str
    topics: list[str] = []
    key_points: list[str] = []
    duration_seconds: int | None = None

    @classmethod
    def from_entry(cls, entry: ConversationEntry) -> ConversationEntryOut:
        return cls(
            date=entry.date,
            summary=entry.summary,
            topics=list(entry.topics),
            key_points=list(entry.key_points),
            duration_seconds=entry.duration_seconds,
        )


class PersonOut(BaseModel):
    """A person as shown to the presentation layer (no voice reference)."""

    name: str
    speaker_id: str
    has_voice_profile: bool = False
    last_met: datetime | None = None
    conversation_count: int = 0
    last_conversation: ConversationEntryOut | None = None

    @classmethod
    def from_record(cls, record: PersonRecord) -> PersonOut:
        last = record.last_conversation
        return cls(
            name=record.name,
            speaker_id=record.speaker_id,
            has_voice_profile=record.voice_reference is not None,
            last_met=record.last_met,
            conversation_count=len(record.conversation_history),
            last_conversation=ConversationEntryOut.from_entry(last) if last else None,
        )


class IdentityEvent(BaseModel):
    """Sent when a speaker is recognized or a new person is identified."""

    type: ResolutionAction
    speaker: str | None = None
    person: PersonOut | None = None

    @classmethod
    def from_result(cls, result: ResolutionResult) -> IdentityEvent:
        return cls(
            type=result.action,
            speaker=result.placeholder,
            person=PersonOut.from_record(result.person) if result.person else None,
        )


class SessionEnded(BaseModel):
    """Sent once, after the final flush and summary."""

    type: str = "session_ended"
    participants: list[str] = []
    summary: str | None = None
    topics: list[str] = []
    failed: list[str] = []

    @classmethod
    def from_summary(cls, outcome: SessionSummary) -> SessionEnded:
        return cls(
            participants=outcome.participants,
            summary=outcome.summary.summary if outcome.summary else None,
            topics=outcome.summary.topics if outcome.summary else [],
            failed=outcome.failed,
        )
