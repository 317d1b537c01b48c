"""Shared fakes for resolver, summarizer and session tests (no external APIs)."""

from __future__ import annotations

from collections.abc import Callable, Sequence

import pytest

from nametag.audio.models import AudioUnit
from nametag.extraction.extractor import NameExtractor
from nametag.extraction.models import (
    Confidence,
    ConversationSummary,
    ExtractionOk,
    ExtractionResult,
    NameCandidate,
)
from nametag.identity.models import ResolutionResult
from nametag.storage.store import InMemoryPersonStore
from nametag.transcription.gateway import TranscriptionGateway
from nametag.transcription.models import KnownSpeaker, TranscriptSegment

START = 1_700_000_000.0


class FakeClock:
    """Manually advanced wall clock (seconds)."""

    def __init__(self, now: float = START) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeExtractor(NameExtractor):
    """Returns a configurable extraction result and summary."""

    def __init__(
        self,
        result: ExtractionResult | Exception | None = None,
        summary: ConversationSummary | Exception | None = None,
    ) -> None:
        self.result = result if result is not None else ExtractionOk([])
        self.summary = summary or ConversationSummary(
            summary="Talked about the conference.",
            topics=["conference"],
            key_points=["Both are speaking on Friday"],
        )
        self.extract_calls: list[str] = []
        self.summarize_calls: list[str] = []

    def returns(self, *names: tuple[str, str]) -> None:
        self.result = ExtractionOk(
            [NameCandidate(name=n, confidence=Confidence(c)) for n, c in names]
        )

    def extract(self, text: str) -> ExtractionResult:
        self.extract_calls.append(text)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result

    def summarize(self, text: str) -> ConversationSummary:
        self.summarize_calls.append(text)
        if isinstance(self.summary, Exception):
            raise self.summary
        return self.summary


class FakeGateway(TranscriptionGateway):
    """Hands out queued segment batches, one per submit."""

    def __init__(self, batches: Sequence[list[TranscriptSegment] | Exception] = ()) -> None:
        self.batches = list(batches)
        self.calls: list[tuple[AudioUnit, list[KnownSpeaker]]] = []
        self.on_submit: Callable[[], None] | None = None

    def submit(
        self,
        unit: AudioUnit,
        known_speakers: Sequence[KnownSpeaker] = (),
    ) -> list[TranscriptSegment]:
        self.calls.append((unit, list(known_speakers)))
        if self.on_submit is not None:
            self.on_submit()
        if not self.batches:
            return []
        batch = self.batches.pop(0)
        if isinstance(batch, Exception):
            raise batch
        return batch


class CollectingPresenter:
    def __init__(self) -> None:
        self.events: list[ResolutionResult] = []

    async def present(self, result: ResolutionResult) -> None:
        self.events.append(result)


def seg(speaker: str, text: str, known: bool = False) -> TranscriptSegment:
    return TranscriptSegment(speaker=speaker, text=text, speaker_is_known=known)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryPersonStore:
    return InMemoryPersonStore()


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()
