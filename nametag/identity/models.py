"""Session-scoped identity state: utterances, bindings and resolver output."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from nametag.exceptions import BindingConflict
from nametag.extraction.models import ConversationSummary
from nametag.storage.models import PersonRecord, normalize_name


class ResolutionAction(str, Enum):
    """What a binding attempt produced, as seen by the presentation adapter."""

    NO_ACTION = "no_action"
    NEW_PERSON_IDENTIFIED = "new_person_identified"
    SPEAKER_RECOGNIZED = "speaker_recognized"


@dataclass(frozen=True)
class ResolutionResult:
    action: ResolutionAction
    placeholder: str | None = None
    person: PersonRecord | None = None


NO_ACTION = ResolutionResult(ResolutionAction.NO_ACTION)


@dataclass(frozen=True)
class ConversationUtterance:
    placeholder: str
    text: str
    timestamp: float

    def as_line(self, name: str | None = None) -> str:
        return f"{name or self.placeholder}: {self.text}"


class SpeakerBindings:
    """Write-once map from per-session placeholder to person name."""

    def __init__(self) -> None:
        self._names: dict[str, str] = {}

    def __contains__(self, placeholder: object) -> bool:
        return placeholder in self._names

    def __len__(self) -> int:
        return len(self._names)

    def get(self, placeholder: str) -> str | None:
        return self._names.get(placeholder)

    def placeholder_for(self, name: str) -> str | None:
        wanted = normalize_name(name)
        for placeholder, bound in self._names.items():
            if normalize_name(bound) == wanted:
                return placeholder
        return None

    def bind(self, placeholder: str, name: str) -> None:
        """Bind *placeholder* to *name*.

        Raises:
            BindingConflict: If *placeholder* is already bound.
        """
        bound = self._names.get(placeholder)
        if bound is not None:
            raise BindingConflict(placeholder, bound, name)
        self._names[placeholder] = name

    def items(self) -> list[tuple[str, str]]:
        return list(self._names.items())


@dataclass
class SessionSummary:
    """What ending a session produced."""

    participants: list[str]
    summary: ConversationSummary | None = None
    records: list[PersonRecord] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
