"""Regex heuristics for spotting self-introductions in utterances."""

from __future__ import annotations

import re

# First-person phrases that usually precede a speaker's own name.
INTRODUCTION_PHRASES: tuple[str, ...] = (
    r"i[’']?m",
    r"i am",
    r"my name is",
    r"my name[’']s",
    r"name[’']s",
    r"call me",
    r"this is",
)

_PHRASES = "|".join(INTRODUCTION_PHRASES)

INTRODUCTION_RE = re.compile(rf"\b(?:{_PHRASES})\b", re.IGNORECASE)

# Words allowed between the phrase and the name ("I'm actually Carol").
_FILLER = r"(?:(?:just|actually|called|uh|um|erm)[\s,]+)*"


def has_introduction_keyword(text: str) -> bool:
    """True if *text* contains an introduction phrase anywhere."""
    return INTRODUCTION_RE.search(text) is not None


def mentions_name(text: str, name: str) -> bool:
    """True if *name* appears in *text* as whole words, ignoring case."""
    pattern = r"\s+".join(re.escape(part) for part in name.split())
    if not pattern:
        return False
    return re.search(rf"\b{pattern}\b", text, re.IGNORECASE) is not None


def introduces_as(text: str, name: str) -> bool:
    """True if *text* is the speaker introducing themselves as *name*.

    The line must mention the name and the name (or its first word) must
    follow an introduction phrase: "Hi, I'm Carol", "my name is John Smith".
    """
    if not mentions_name(text, name) or not has_introduction_keyword(text):
        return False

    parts = name.split()
    full = r"\s+".join(re.escape(p) for p in parts)
    first = re.escape(parts[0])
    intro = re.compile(
        rf"\b(?:{_PHRASES})[\s,]+{_FILLER}(?:{full}|{first})\b",
        re.IGNORECASE,
    )
    return intro.search(text) is not None
