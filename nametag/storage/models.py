"""Person and conversation-history records owned by the PersonStore."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class ConversationEntry:
    """One meeting with a person. Appended to history, never modified."""

    date: datetime
    summary: str
    topics: tuple[str, ...] = ()
    key_points: tuple[str, ...] = ()
    duration_seconds: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "summary": self.summary,
            "topics": list(self.topics),
            "key_points": list(self.key_points),
            "duration_seconds": self.duration_seconds,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConversationEntry:
        return cls(
            date=datetime.fromisoformat(data["date"]),
            # "transcript" is the key older memory files used for the summary
            summary=data.get("summary") or data.get("transcript") or "",
            topics=tuple(data.get("topics") or ()),
            key_points=tuple(data.get("key_points") or data.get("keyPoints") or ()),
            duration_seconds=data.get("duration_seconds", data.get("duration")),
        )


@dataclass
class PersonRecord:
    """Someone the user has met, with their voice reference and history."""

    name: str
    speaker_id: str
    voice_reference: str | None = None
    conversation_history: list[ConversationEntry] = field(default_factory=list)
    last_met: datetime | None = None

    @property
    def key(self) -> str:
        return normalize_name(self.name)

    @property
    def last_conversation(self) -> ConversationEntry | None:
        return self.conversation_history[-1] if self.conversation_history else None

    def append_conversation(self, entry: ConversationEntry) -> None:
        self.conversation_history.append(entry)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "speaker_id": self.speaker_id,
            "voice_reference": self.voice_reference,
            "conversation_history": [e.to_dict() for e in self.conversation_history],
            "last_met": self.last_met.isoformat() if self.last_met else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PersonRecord:
        last_met = data.get("last_met") or data.get("lastMet")
        return cls(
            name=data["name"],
            speaker_id=data.get("speaker_id") or data.get("speakerId") or "",
            voice_reference=data.get("voice_reference") or data.get("voiceReference"),
            conversation_history=[
                ConversationEntry.from_dict(e)
                for e in data.get("conversation_history") or data.get("conversationHistory") or []
            ],
            last_met=datetime.fromisoformat(last_met) if last_met else None,
        )


def normalize_name(name: str) -> str:
    """Case- and whitespace-insensitive key for a person's name."""
    return " ".join(name.split()).lower()


def merge_history(
    existing: list[ConversationEntry],
    incoming: list[ConversationEntry],
) -> list[ConversationEntry]:
    """Append entries from *incoming* that *existing* does not already hold.

    Existing entries are never dropped or reordered, so storing the same
    record twice leaves the history unchanged.
    """
    merged = list(existing)
    for entry in incoming:
        if entry not in merged:
            merged.append(entry)
    return merged
