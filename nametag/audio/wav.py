"""WAV encoding helpers for raw 16-bit mono PCM."""

from __future__ import annotations

import base64
import io
import wave

DATA_URL_PREFIX = "data:audio/wav;base64,"


def encode_wav(pcm: bytes, sample_rate: int = 16000) -> bytes:
    """Wrap little-endian 16-bit mono PCM in a WAV container."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm)
    return buf.getvalue()


def to_data_url(wav_bytes: bytes) -> str:
    """Return *wav_bytes* as a ``data:audio/wav;base64,...`` URL."""
    return DATA_URL_PREFIX + base64.b64encode(wav_bytes).decode("ascii")


def from_data_url(value: str) -> bytes:
    """Decode a data URL (or bare base64 string) back to WAV bytes."""
    if value.startswith("data:"):
        value = value.split(",", 1)[1]
    return base64.b64decode(value)
