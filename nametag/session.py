"""Live session: audio in, identification events out, summary at the end."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Protocol

from nametag.audio.buffer import AudioIngestBuffer
from nametag.exceptions import TransientServiceError
from nametag.extraction.extractor import NameExtractor
from nametag.identity.models import ResolutionResult, SessionSummary
from nametag.identity.resolver import IdentityResolver
from nametag.identity.summarizer import ConversationSummarizer
from nametag.session_config import SessionConfig
from nametag.storage.models import PersonRecord, normalize_name
from nametag.storage.store import PersonStore
from nametag.transcription.gateway import TranscriptionGateway
from nametag.transcription.models import KnownSpeaker

logger = logging.getLogger(__name__)


class Presenter(Protocol):
    """Consumer of identification events (display, websocket, ...)."""

    async def present(self, result: ResolutionResult) -> None: ...


class LiveSession:
    """Owns every piece of mutable state for one device connection.

    Audio is ingested continuously; a timer task flushes it every
    ``flush_interval_seconds``. The flush lock keeps at most one transcription
    request in flight, and the pending buffer is swapped before the request
    starts, so ingestion never waits on the network. ``close`` cancels the
    timer, lets an in-flight flush finish, then runs exactly one final flush
    and one summarisation.
    """

    def __init__(
        self,
        session_id: str,
        gateway: TranscriptionGateway,
        store: PersonStore,
        extractor: NameExtractor,
        config: SessionConfig | None = None,
        presenter: Presenter | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.session_id = session_id
        self.log = logging.LoggerAdapter(logger, {"session_id": session_id})
        self.gateway = gateway
        self.store = store
        self.config = config or SessionConfig()
        self.presenter = presenter
        self._clock = clock

        self.buffer = AudioIngestBuffer(
            history_seconds=self.config.audio_history_seconds,
            sample_rate=self.config.sample_rate,
            clock=clock,
        )
        self.resolver = IdentityResolver(
            store,
            extractor,
            config=self.config,
            clip_source=lambda: self.buffer.extract_recent_clip(self.config.voice_clip_ms),
            clock=clock,
        )
        self.summarizer = ConversationSummarizer(
            store, extractor, timeout=self.config.external_timeout_seconds
        )
        self.known_speakers: list[KnownSpeaker] = []

        self.started_at = clock()
        self._flush_lock = asyncio.Lock()
        self._close_lock = asyncio.Lock()
        self._timer: asyncio.Task[None] | None = None
        self._closed = False
        self._summary: SessionSummary | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> None:
        """Load known voices and start the periodic flush timer."""
        try:
            people = await asyncio.to_thread(self.store.list)
        except Exception:
            self.log.exception("Could not load known people")
            people = []

        for person in people:
            self._remember_voice(person)
        self.log.info(
            "Loaded %d known people, %d with voice profiles",
            len(people),
            len(self.known_speakers),
        )

        self._timer = asyncio.create_task(self._flush_loop())

    def ingest(self, data: bytes) -> None:
        if self._closed:
            self.log.debug("Dropping audio after close")
            return
        self.buffer.ingest(data)

    async def _flush_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.flush_interval_seconds)
            # Shielded so cancelling the timer never abandons a unit mid-request.
            await asyncio.shield(self.flush())

    async def flush(self) -> list[ResolutionResult]:
        """Transcribe whatever has been buffered and resolve identities.

        Returns:
            Identification events for this batch, in order; empty on failure
            or when nothing was buffered.
        """
        async with self._flush_lock:
            if self._closed:
                return []

            unit = self.buffer.flush()
            if unit is None:
                return []

            self.log.info("Processing %d audio chunks", unit.chunk_count)
            try:
                segments = await asyncio.wait_for(
                    asyncio.to_thread(self.gateway.submit, unit, list(self.known_speakers)),
                    timeout=self.config.external_timeout_seconds,
                )
            except TimeoutError:
                self.log.warning(
                    "Transcription timed out after %.1fs; dropping unit",
                    self.config.external_timeout_seconds,
                )
                return []
            except TransientServiceError as exc:
                self.log.warning("%s; dropping unit", exc)
                return []
            except Exception:
                self.log.exception("Transcription failed; dropping unit")
                return []

            for segment in segments:
                self.log.info(
                    "[%s] %s",
                    self.resolver.display_name(segment.speaker),
                    segment.text,
                )

            results = await asyncio.to_thread(self.resolver.process_batch, segments)

            for result in results:
                if result.person is not None:
                    self._remember_voice(result.person)
                await self._present(result)

            return results

    async def close(self) -> SessionSummary:
        """Final flush and summary. Safe to call more than once."""
        async with self._close_lock:
            if self._summary is not None:
                return self._summary

            if self._timer is not None:
                self._timer.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._timer
                self._timer = None

            await self.flush()
            self._closed = True

            ended = self._clock()
            ended_at = datetime.fromtimestamp(ended, timezone.utc)
            duration = max(0, int(ended - self.started_at))

            self._summary = await asyncio.to_thread(
                self.summarizer.finalize, self.resolver, ended_at, duration
            )
            self.log.info(
                "Session closed after %ds with %d participant(s)",
                duration,
                len(self._summary.participants),
            )
            return self._summary

    async def _present(self, result: ResolutionResult) -> None:
        if self.presenter is None:
            return
        try:
            await self.presenter.present(result)
        except Exception:
            self.log.exception("Presenter failed for %s", result.action.value)

    def _remember_voice(self, person: PersonRecord) -> None:
        if not person.voice_reference:
            return
        key = normalize_name(person.name)
        if any(normalize_name(s.name) == key for s in self.known_speakers):
            return
        self.known_speakers.append(KnownSpeaker(person.name, person.voice_reference))
