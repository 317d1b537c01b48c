"""Data models for name extraction and conversation summaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Confidence(str, Enum):
    """How sure the extractor is that a name came from a self-introduction."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class NameCandidate:
    """A name the extractor believes someone introduced themselves with."""

    name: str
    confidence: Confidence


@dataclass(frozen=True)
class ExtractionOk:
    """Validated extraction payload."""

    candidates: list[NameCandidate]

    @property
    def high_confidence(self) -> list[NameCandidate]:
        return [c for c in self.candidates if c.confidence is Confidence.HIGH]


@dataclass(frozen=True)
class ExtractionError:
    """Extraction payload that could not be used (malformed or missing)."""

    reason: str


ExtractionResult = ExtractionOk | ExtractionError

FALLBACK_SUMMARY = "Error generating summary"


@dataclass
class ConversationSummary:
    """Summary of one conversation, written into each participant's history."""

    summary: str
    topics: list[str] = field(default_factory=list)
    key_points: list[str] = field(default_factory=list)

    @classmethod
    def fallback(cls) -> ConversationSummary:
        """Degraded summary used when the summarization call fails."""
        return cls(summary=FALLBACK_SUMMARY)
