"""Parsers turning diarization responses into transcript segments."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from nametag.transcription.models import TranscriptSegment

UNKNOWN_SPEAKER = "Unknown"


def _field(item: Any, name: str, default: Any = None) -> Any:
    """Read *name* from an SDK object or a plain dict."""
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def _is_known(speaker: str, known_names: Iterable[str]) -> bool:
    lowered = speaker.lower()
    return any(lowered == name.lower() for name in known_names)


def parse_diarized_response(
    response: Any,
    known_names: Iterable[str] = (),
) -> list[TranscriptSegment]:
    """Parse an OpenAI ``diarized_json`` transcription response.

    Shape::

        {"segments": [{"speaker": "A", "text": "...", "start": s, "end": s}]}

    Speakers matching one of *known_names* (case-insensitive) are flagged as
    fingerprint matches. Segments with empty text are dropped.
    """
    known = list(known_names)
    segments: list[TranscriptSegment] = []

    for seg in _field(response, "segments") or []:
        text = (_field(seg, "text") or "").strip()
        if not text:
            continue
        speaker = _field(seg, "speaker") or UNKNOWN_SPEAKER
        segments.append(
            TranscriptSegment(
                speaker=speaker,
                text=text,
                start_time=_field(seg, "start"),
                end_time=_field(seg, "end"),
                speaker_is_known=_is_known(speaker, known),
            )
        )

    return segments


def parse_assemblyai_utterances(utterances: Iterable[Any] | None) -> list[TranscriptSegment]:
    """Parse AssemblyAI utterances (times in milliseconds) into segments.

    AssemblyAI does not accept voice references, so every label is a
    placeholder.
    """
    segments: list[TranscriptSegment] = []

    for utt in utterances or []:
        text = (_field(utt, "text") or "").strip()
        if not text:
            continue
        start = _field(utt, "start")
        end = _field(utt, "end")
        segments.append(
            TranscriptSegment(
                speaker=_field(utt, "speaker") or UNKNOWN_SPEAKER,
                text=text,
                start_time=start / 1000.0 if start is not None else None,
                end_time=end / 1000.0 if end is not None else None,
            )
        )

    return segments
