"""Resolve anonymous speaker placeholders into people, once per session."""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable, Iterable
from datetime import datetime, timezone

from nametag.bounded import call_with_timeout
from nametag.exceptions import BindingConflict, ExtractionAmbiguityError, TransientServiceError
from nametag.extraction.extractor import NameExtractor
from nametag.extraction.models import ExtractionError
from nametag.identity.models import (
    NO_ACTION,
    ConversationUtterance,
    ResolutionAction,
    ResolutionResult,
    SpeakerBindings,
)
from nametag.identity.patterns import has_introduction_keyword, introduces_as
from nametag.session_config import SessionConfig
from nametag.storage.models import PersonRecord, normalize_name
from nametag.storage.store import PersonStore
from nametag.transcription.models import TranscriptSegment

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Per-session state machine turning placeholders into people.

    Every placeholder starts unbound and is bound at most once, either from a
    fingerprint match reported by the transcription service or from a
    high-confidence self-introduction the extractor finds and the regex
    heuristics attribute to that placeholder. A bound placeholder is never
    rebound for the life of the session.

    Nothing raised by the extractor, the store or the clip source escapes
    this class; failures are logged and the placeholder stays anonymous.
    """

    def __init__(
        self,
        store: PersonStore,
        extractor: NameExtractor,
        config: SessionConfig | None = None,
        clip_source: Callable[[], str | None] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.extractor = extractor
        self.config = config or SessionConfig()
        self.clip_source = clip_source
        self._clock = clock

        self.utterances: deque[ConversationUtterance] = deque(
            maxlen=self.config.utterance_buffer_size
        )
        # Input to the end-of-session summary; oldest lines drop past the cap.
        self.transcript: deque[ConversationUtterance] = deque(
            maxlen=self.config.transcript_max_utterances
        )
        self.bindings = SpeakerBindings()
        self.utterance_count = 0
        self.pending_writes: list[PersonRecord] = []

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), timezone.utc)

    # -- input ---------------------------------------------------------------

    def on_segment(self, segment: TranscriptSegment) -> list[ResolutionResult]:
        """Buffer one transcript segment and run any identity checks it triggers.

        Returns:
            The identification events produced; empty when nothing changed.
        """
        utterance = ConversationUtterance(
            placeholder=segment.speaker,
            text=segment.text,
            timestamp=self._clock(),
        )
        self.utterances.append(utterance)
        self.transcript.append(utterance)
        self.utterance_count += 1

        results: list[ResolutionResult] = []

        if segment.speaker_is_known:
            results.append(self._bind(segment.speaker, segment.speaker))

        keyword = has_introduction_keyword(segment.text)
        periodic = self.utterance_count % self.config.name_check_interval == 0
        if keyword or periodic:
            results.extend(self.check_for_names())

        return [r for r in results if r.action is not ResolutionAction.NO_ACTION]

    def process_batch(self, segments: Iterable[TranscriptSegment]) -> list[ResolutionResult]:
        """Run :meth:`on_segment` over one flush worth of segments, in order."""
        results: list[ResolutionResult] = []
        for segment in segments:
            results.extend(self.on_segment(segment))
        return results

    # -- name checks ---------------------------------------------------------

    def check_for_names(self) -> list[ResolutionResult]:
        """Ask the extractor for self-introductions in the buffered transcript."""
        if not self.utterances:
            return []

        text = "\n".join(u.as_line() for u in self.utterances)
        try:
            result = call_with_timeout(
                "name-extraction",
                self.extractor.extract,
                text,
                timeout=self.config.external_timeout_seconds,
            )
        except TransientServiceError as exc:
            logger.warning("%s; speakers stay anonymous", exc)
            return []
        except Exception:
            logger.exception("Name extraction failed; speakers stay anonymous")
            return []

        if isinstance(result, ExtractionError):
            logger.debug("Discarding extraction: %s", ExtractionAmbiguityError(result.reason))
            return []

        skipped = len(result.candidates) - len(result.high_confidence)
        if skipped:
            logger.debug("Ignoring %d candidate(s) below high confidence", skipped)

        results: list[ResolutionResult] = []
        for candidate in result.high_confidence:
            placeholder = self.find_speaker_for_name(candidate.name)
            if placeholder is None:
                logger.debug("Could not attribute %r to a speaker", candidate.name)
                continue

            outcome = self._bind(placeholder, candidate.name)
            if outcome.action is not ResolutionAction.NO_ACTION:
                results.append(outcome)

        return results

    def find_speaker_for_name(self, name: str) -> str | None:
        """Return the placeholder that introduced themselves as *name*.

        Only the most recent ``attribution_window`` utterances are scanned,
        newest first. Returns ``None`` when no line both mentions the name and
        reads as a self-introduction.
        """
        recent = list(self.utterances)[-self.config.attribution_window :]
        for utterance in reversed(recent):
            if introduces_as(utterance.text, name):
                return utterance.placeholder
        return None

    # -- binding -------------------------------------------------------------

    def _bind(self, placeholder: str, name: str) -> ResolutionResult:
        bound = self.bindings.get(placeholder)
        if bound is not None:
            if normalize_name(bound) != normalize_name(name):
                logger.warning("%s", BindingConflict(placeholder, bound, name))
            return NO_ACTION

        other = self.bindings.placeholder_for(name)
        if other is not None:
            logger.info(
                "%s is already bound to speaker %s; not binding speaker %s", name, other, placeholder
            )
            return NO_ACTION

        try:
            existing = self.store.find_by_name(name)
        except Exception:
            logger.exception("Person lookup failed for %s", name)
            return NO_ACTION

        now = self._now()

        if existing is not None:
            existing.last_met = now
            if existing.voice_reference is None:
                existing.voice_reference = self._extract_clip()
            self.bindings.bind(placeholder, existing.name)
            self._persist(existing)
            logger.info("Recognized returning person: %s (speaker %s)", existing.name, placeholder)
            return ResolutionResult(ResolutionAction.SPEAKER_RECOGNIZED, placeholder, existing)

        person = PersonRecord(
            name=name,
            speaker_id=placeholder,
            voice_reference=self._extract_clip(),
            last_met=now,
        )
        self.bindings.bind(placeholder, person.name)
        self._persist(person)
        logger.info("New person identified: %s (speaker %s)", person.name, placeholder)
        return ResolutionResult(ResolutionAction.NEW_PERSON_IDENTIFIED, placeholder, person)

    def _extract_clip(self) -> str | None:
        if self.clip_source is None:
            return None
        try:
            return self.clip_source()
        except Exception:
            logger.exception("Voice clip extraction failed")
            return None

    def _persist(self, record: PersonRecord) -> None:
        try:
            self.store.store(record)
        except Exception:
            logger.exception("Could not store %s; will retry at session end", record.name)
            self.pending_writes.append(record)

    # -- queries -------------------------------------------------------------

    def display_name(self, label: str) -> str:
        """Resolved name for *label*, or the label itself while unbound."""
        return self.bindings.get(label) or label

    @property
    def participants(self) -> list[tuple[str, str]]:
        """``(placeholder, name)`` pairs bound this session, in binding order."""
        return self.bindings.items()
