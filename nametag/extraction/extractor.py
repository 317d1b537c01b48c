"""Claude-powered self-introduction extraction and conversation summaries."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

from anthropic import Anthropic

from nametag.config import settings
from nametag.extraction.models import (
    Confidence,
    ConversationSummary,
    ExtractionError,
    ExtractionOk,
    ExtractionResult,
    NameCandidate,
)

logger = logging.getLogger(__name__)

NAME_TOOL: dict[str, Any] = {
    "name": "record_self_introductions",
    "description": (
        "Record the names people used to introduce THEMSELVES in the transcript. "
        "Call this once with every self-introduction found (possibly none)."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "names": {
                "type": "array",
                "description": "Names from first-person self-introductions.",
                "items": {
                    "type": "object",
                    "properties": {
                        "name": {
                            "type": "string",
                            "description": "The name exactly as the speaker said it.",
                        },
                        "confidence": {
                            "type": "string",
                            "enum": ["high", "medium", "low"],
                            "description": (
                                "high only for a clear first-person introduction; "
                                "medium for uncertain cases; low for very ambiguous ones."
                            ),
                        },
                    },
                    "required": ["name", "confidence"],
                },
            },
        },
        "required": ["names"],
    },
}

SUMMARY_TOOL: dict[str, Any] = {
    "name": "record_conversation_summary",
    "description": "Store a short summary of the conversation for later recall.",
    "input_schema": {
        "type": "object",
        "properties": {
            "summary": {
                "type": "string",
                "description": "Brief 1-2 sentence summary, in past tense.",
            },
            "topics": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Main topics discussed, in past tense.",
            },
            "key_points": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Key points worth remembering next time.",
            },
        },
        "required": ["summary", "topics", "key_points"],
    },
}

NAME_SYSTEM_PROMPT = (
    "You analyse live conversation transcripts from a wearable device. Each line "
    "is prefixed with a speaker label.\n\n"
    "Extract ONLY names from SELF-introductions, where someone introduces "
    "themselves in the first person: \"I'm X\", \"I am X\", \"My name is X\", "
    "\"Call me X\", \"This is X speaking\".\n"
    "- Do NOT extract names mentioned in the third person (\"I met John\", "
    "\"John told me\").\n"
    "- Do NOT extract names from questions (\"Are you John?\").\n"
    "- Use \"high\" confidence ONLY for clear first-person self-introductions.\n\n"
    "Use the record_self_introductions tool to return your results, with an "
    "empty list if nobody introduced themselves."
)

SUMMARY_SYSTEM_PROMPT = (
    "You summarise conversations so the listener can remember them the next time "
    "they meet the same person. Write ALL content in the PAST TENSE, as if "
    "recalling what was discussed (\"Discussed project timeline\", not "
    "\"Discussing project timeline\"). Focus on what would help someone remember "
    "this conversation later.\n\n"
    "Use the record_conversation_summary tool to return your results."
)


class NameExtractor(ABC):
    """Contract for the language-model collaborator."""

    @abstractmethod
    def extract(self, text: str) -> ExtractionResult:
        """Find self-introduced names in *text*."""

    @abstractmethod
    def summarize(self, text: str) -> ConversationSummary:
        """Summarise the conversation in *text*."""


class ClaudeNameExtractor(NameExtractor):
    """Name extraction and summarisation via Claude tool use."""

    def __init__(self, client: Any = None, model: str | None = None) -> None:
        self._client = client
        self.model = model or settings.llm_model

    @property
    def client(self) -> Any:
        if self._client is None:
            # No SDK retries: one attempt must fit in external_timeout_seconds.
            self._client = Anthropic(
                api_key=settings.anthropic_api_key,
                timeout=settings.external_timeout_seconds,
                max_retries=0,
            )
        return self._client

    def extract(self, text: str) -> ExtractionResult:
        """Extract self-introduced names from a transcript.

        Transport errors propagate; payload problems come back as
        :class:`ExtractionError`.
        """
        response = self.client.messages.create(
            model=self.model,
            max_tokens=1024,
            system=NAME_SYSTEM_PROMPT,
            tools=[NAME_TOOL],
            tool_choice={"type": "tool", "name": NAME_TOOL["name"]},
            messages=[
                {
                    "role": "user",
                    "content": f"Extract self-introductions from this transcript:\n\n{text}",
                }
            ],
        )
        return _parse_name_response(response)

    def summarize(self, text: str) -> ConversationSummary:
        """Summarise a transcript; never raises.

        Returns:
            The parsed summary, or :meth:`ConversationSummary.fallback` if the
            call or the payload fails.
        """
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=1024,
                system=SUMMARY_SYSTEM_PROMPT,
                tools=[SUMMARY_TOOL],
                tool_choice={"type": "tool", "name": SUMMARY_TOOL["name"]},
                messages=[
                    {
                        "role": "user",
                        "content": f"Summarise this conversation:\n\n{text}",
                    }
                ],
            )
            return _parse_summary_response(response)
        except Exception:
            logger.exception("Conversation summarisation failed")
            return ConversationSummary.fallback()


def _tool_input(response: Any, tool_name: str) -> Any:
    """Return the input of the first matching tool_use block, or None."""
    for block in response.content:
        if block.type != "tool_use" or block.name != tool_name:
            continue
        data = block.input
        if isinstance(data, str):
            data = json.loads(data)
        return data
    return None


def _parse_name_response(response: Any) -> ExtractionResult:
    """Validate a record_self_introductions response into an ExtractionResult."""
    try:
        data = _tool_input(response, NAME_TOOL["name"])
    except json.JSONDecodeError as exc:
        return ExtractionError(f"tool input is not valid JSON: {exc}")

    if not isinstance(data, dict):
        return ExtractionError("no record_self_introductions tool call in response")

    raw_names = data.get("names")
    if not isinstance(raw_names, list):
        return ExtractionError("'names' is missing or not a list")

    candidates: list[NameCandidate] = []
    for entry in raw_names:
        if not isinstance(entry, dict):
            return ExtractionError(f"name entry is not an object: {entry!r}")
        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            return ExtractionError(f"name entry has no usable name: {entry!r}")
        try:
            confidence = Confidence(str(entry.get("confidence", "")).lower())
        except ValueError:
            return ExtractionError(f"unknown confidence tier: {entry.get('confidence')!r}")
        candidates.append(NameCandidate(name=name.strip(), confidence=confidence))

    return ExtractionOk(candidates)


def _parse_summary_response(response: Any) -> ConversationSummary:
    """Parse a record_conversation_summary response.

    Raises:
        ValueError: If the response carries no usable summary payload.
    """
    data = _tool_input(response, SUMMARY_TOOL["name"])
    if not isinstance(data, dict) or not isinstance(data.get("summary"), str):
        raise ValueError("no record_conversation_summary payload in response")

    return ConversationSummary(
        summary=data["summary"],
        topics=[str(t) for t in data.get("topics") or []],
        key_points=[str(p) for p in data.get("key_points") or []],
    )
