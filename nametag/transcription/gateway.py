"""Speech + diarization gateways: submit a flushed unit, get speaker segments."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from openai import OpenAI

from nametag.audio.wav import encode_wav
from nametag.exceptions import TransientServiceError
from nametag.session_config import TranscriptionProvider
from nametag.transcription.models import KnownSpeaker, TranscriptSegment
from nametag.transcription.parsers import parse_assemblyai_utterances, parse_diarized_response

if TYPE_CHECKING:
    from nametag.audio.models import AudioUnit
    from nametag.config import Settings

logger = logging.getLogger(__name__)


class TranscriptionGateway(ABC):
    """Contract for submitting audio to an external speech service."""

    @abstractmethod
    def submit(
        self,
        unit: AudioUnit,
        known_speakers: Sequence[KnownSpeaker] = (),
    ) -> list[TranscriptSegment]:
        """Transcribe *unit*, labelling speakers by name where a voice matches.

        Raises:
            TransientServiceError: On any transport or service failure.
        """


class OpenAIDiarizationGateway(TranscriptionGateway):
    """OpenAI ``gpt-4o-transcribe-diarize`` with known-speaker references."""

    def __init__(
        self,
        client: Any = None,
        model: str = "gpt-4o-transcribe-diarize",
        sample_rate: int = 16000,
        api_key: str = "",
        timeout: float = 10.0,
    ) -> None:
        self._client = client or OpenAI(api_key=api_key or None, timeout=timeout)
        self.model = model
        self.sample_rate = sample_rate

    def submit(
        self,
        unit: AudioUnit,
        known_speakers: Sequence[KnownSpeaker] = (),
    ) -> list[TranscriptSegment]:
        params: dict[str, Any] = {
            "model": self.model,
            "file": ("audio.wav", encode_wav(unit.pcm, self.sample_rate), "audio/wav"),
            "response_format": "diarized_json",
            "chunking_strategy": "auto",
        }
        if known_speakers:
            params["extra_body"] = {
                "known_speaker_names": [s.name for s in known_speakers],
                "known_speaker_references": [s.voice_reference for s in known_speakers],
            }
            logger.info(
                "Using %d known voice(s): %s",
                len(known_speakers),
                ", ".join(s.name for s in known_speakers),
            )

        try:
            response = self._client.audio.transcriptions.create(**params)
        except Exception as exc:
            raise TransientServiceError("openai-transcription", exc) from exc

        segments = parse_diarized_response(response, [s.name for s in known_speakers])
        logger.info("Transcribed %d segments from %d bytes", len(segments), unit.size)
        return segments


class AssemblyAIGateway(TranscriptionGateway):
    """AssemblyAI batch transcription with ``speaker_labels``.

    The API has no voice-reference input, so known speakers are ignored and
    all labels come back as placeholders.
    """

    def __init__(
        self,
        api_key: str,
        speech_model: str = "universal-3-pro",
        sample_rate: int = 16000,
        transcriber: Any = None,
    ) -> None:
        self.api_key = api_key
        self.speech_model = speech_model
        self.sample_rate = sample_rate
        self._transcriber = transcriber

    def _get_transcriber(self) -> Any:
        if self._transcriber is None:
            import assemblyai as aai  # type: ignore[import-untyped]  # no stubs

            aai.settings.api_key = self.api_key
            self._transcriber = aai.Transcriber()
        return self._transcriber

    def submit(
        self,
        unit: AudioUnit,
        known_speakers: Sequence[KnownSpeaker] = (),
    ) -> list[TranscriptSegment]:
        import assemblyai as aai  # type: ignore[import-untyped]

        if known_speakers:
            logger.debug("AssemblyAI ignores %d known voice(s)", len(known_speakers))

        # speaker_labels=True is what turns on diarization; without it the API
        # returns one flat block with no speaker.
        config = aai.TranscriptionConfig(
            speech_models=[self.speech_model],
            speaker_labels=True,
        )

        try:
            transcript = self._get_transcriber().transcribe(
                encode_wav(unit.pcm, self.sample_rate), config=config
            )
        except Exception as exc:
            raise TransientServiceError("assemblyai", exc) from exc

        if transcript.status == aai.TranscriptStatus.error:
            raise TransientServiceError("assemblyai", Exception(transcript.error))

        segments = parse_assemblyai_utterances(transcript.utterances)
        logger.info("Transcribed %d segments from %d bytes", len(segments), unit.size)
        return segments


def build_gateway(settings: Settings) -> TranscriptionGateway:
    """Create the gateway selected by ``settings.transcription_provider``."""
    provider = TranscriptionProvider(settings.transcription_provider)

    if provider is TranscriptionProvider.ASSEMBLYAI:
        return AssemblyAIGateway(
            api_key=settings.assemblyai_api_key,
            speech_model=settings.assemblyai_speech_model,
            sample_rate=settings.sample_rate,
        )

    return OpenAIDiarizationGateway(
        model=settings.transcription_model,
        sample_rate=settings.sample_rate,
        api_key=settings.openai_api_key,
        timeout=settings.external_timeout_seconds,
    )
