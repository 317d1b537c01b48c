"""End-of-session summaries written into each participant's history."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from nametag.bounded import call_with_timeout
from nametag.exceptions import TransientServiceError
from nametag.extraction.extractor import NameExtractor
from nametag.extraction.models import ConversationSummary
from nametag.identity.models import ConversationUtterance, SessionSummary
from nametag.identity.resolver import IdentityResolver
from nametag.storage.models import ConversationEntry, PersonRecord, normalize_name
from nametag.storage.store import PersonStore

logger = logging.getLogger(__name__)


def render_transcript(
    utterances: Iterable[ConversationUtterance],
    names: dict[str, str],
) -> str:
    """Join utterances as ``speaker: text`` lines, naming bound placeholders."""
    return "\n".join(u.as_line(names.get(u.placeholder)) for u in utterances)


class ConversationSummarizer:
    """Summarises a finished session and appends it to participants' histories."""

    def __init__(
        self,
        store: PersonStore,
        extractor: NameExtractor,
        timeout: float | None = None,
    ) -> None:
        self.store = store
        self.extractor = extractor
        self.timeout = timeout

    def summarize(self, transcript: str) -> ConversationSummary:
        """Summarise *transcript*, degrading to the fallback summary on failure.

        A call that runs past ``timeout`` seconds counts as a failure.
        """
        try:
            return call_with_timeout(
                "summarization", self.extractor.summarize, transcript, timeout=self.timeout
            )
        except TransientServiceError as exc:
            logger.warning("%s; using fallback summary", exc)
            return ConversationSummary.fallback()
        except Exception:
            logger.exception("Summarisation failed; using fallback summary")
            return ConversationSummary.fallback()

    def finalize(
        self,
        resolver: IdentityResolver,
        ended_at: datetime,
        duration_seconds: int | None = None,
    ) -> SessionSummary:
        """Write one ConversationEntry per bound participant.

        Writes the resolver could not complete during the session are retried
        first. Store failures are logged and reported in ``failed``; they do
        not stop the remaining participants from being saved.
        """
        pending = {normalize_name(r.name): r for r in resolver.pending_writes}
        for record in list(pending.values()):
            try:
                self.store.store(record)
            except Exception:
                logger.exception("Retry failed for %s", record.name)
            else:
                del pending[normalize_name(record.name)]

        participants = resolver.participants
        if not participants:
            logger.info("No identified participants; nothing to save")
            return SessionSummary(participants=[])

        dropped = resolver.utterance_count - len(resolver.transcript)
        if dropped > 0:
            logger.warning(
                "Summarising the last %d utterances; %d older ones were dropped",
                len(resolver.transcript),
                dropped,
            )

        names = dict(participants)
        summary = self.summarize(render_transcript(resolver.transcript, names))

        outcome = SessionSummary(participants=[name for _, name in participants], summary=summary)
        for placeholder, name in participants:
            # An unsaved in-session record carries changes (voice clip, last_met)
            # the stored copy lacks.
            record = pending.get(normalize_name(name)) or self._load(name)
            if record is None:
                record = PersonRecord(name=name, speaker_id=placeholder)

            record.append_conversation(
                ConversationEntry(
                    date=ended_at,
                    summary=summary.summary,
                    topics=tuple(summary.topics),
                    key_points=tuple(summary.key_points),
                    duration_seconds=duration_seconds,
                )
            )
            record.last_met = ended_at
            outcome.records.append(record)

            try:
                self.store.store(record)
            except Exception:
                logger.exception("Could not save conversation for %s", name)
                outcome.failed.append(name)

        logger.info("Conversation saved for: %s", ", ".join(outcome.participants))
        return outcome

    def _load(self, name: str) -> PersonRecord | None:
        try:
            return self.store.find_by_name(name)
        except Exception:
            logger.exception("Could not load %s", name)
            return None
