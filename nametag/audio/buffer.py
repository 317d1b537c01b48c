"""Live audio buffering: periodic flush units plus a rolling clip history."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Callable

from nametag.audio.models import AudioChunk, AudioUnit
from nametag.audio.wav import encode_wav, to_data_url

logger = logging.getLogger(__name__)


class AudioIngestBuffer:
    """Accumulates device audio between flushes and keeps a short history.

    ``ingest`` is called for every chunk the device sends. ``flush`` swaps the
    pending buffer out under a lock so ingestion continues while the swapped
    unit is being transcribed. The history deque is trimmed on every ingest so
    memory stays bounded however rarely ``flush`` runs.
    """

    def __init__(
        self,
        history_seconds: float = 30.0,
        sample_rate: int = 16000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.history_seconds = history_seconds
        self.sample_rate = sample_rate
        self._clock = clock
        self._lock = threading.Lock()
        self._pending: list[AudioChunk] = []
        self._history: deque[AudioChunk] = deque()

    def ingest(self, data: bytes) -> AudioChunk:
        """Append *data* to the flush buffer and the rolling history."""
        now = self._clock()
        chunk = AudioChunk(data=data, timestamp=now)
        with self._lock:
            self._pending.append(chunk)
            self._history.append(chunk)
            cutoff = now - self.history_seconds
            while self._history and self._history[0].timestamp < cutoff:
                self._history.popleft()
        return chunk

    def flush(self) -> AudioUnit | None:
        """Swap out the pending chunks and return them as one unit.

        Returns ``None`` when nothing was buffered since the last flush, in
        which case no transcription call should be made.
        """
        with self._lock:
            chunks, self._pending = self._pending, []

        if not chunks:
            return None

        return AudioUnit(
            pcm=b"".join(c.data for c in chunks),
            chunk_count=len(chunks),
            started_at=chunks[0].timestamp,
            ended_at=chunks[-1].timestamp,
        )

    def extract_recent_clip(self, duration_ms: int = 5000) -> str | None:
        """Return the last *duration_ms* of audio as a base64 WAV data URL.

        Used to mint a voice fingerprint for a newly identified person.
        """
        now = self._clock()
        start = now - duration_ms / 1000.0
        with self._lock:
            if not self._history:
                logger.info("No audio history available for voice clip extraction")
                return None
            recent = [c.data for c in self._history if start <= c.timestamp <= now]

        if not recent:
            logger.info("No audio chunks in the last %d ms", duration_ms)
            return None

        clip = to_data_url(encode_wav(b"".join(recent), self.sample_rate))
        logger.info("Extracted %.1fs voice clip from %d chunks", duration_ms / 1000.0, len(recent))
        return clip

    @property
    def history(self) -> list[AudioChunk]:
        """Snapshot of the rolling window, oldest first."""
        with self._lock:
            return list(self._history)
