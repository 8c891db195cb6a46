"""Text utility functions for speech synthesis and timing."""

# This module is part of blessings.utils package

import math
import re

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_BLANK_LINE_RUNS = re.compile(r"\n\s*\n")
_SPACE_RUNS = re.compile(r"[ \t]+")


def sanitize_tts_text(text: str, max_length: int = 10000) -> str:
    """
    Clean text before sending it for speech synthesis.

    Strips control characters, normalizes line endings, collapses blank-line
    and space/tab runs, trims, and caps the length.

    Args:
        text: Raw text.
        max_length: Hard cap on characters; longer text is cut and gets "...".

    Returns:
        Sanitized text (may be empty).
    """
    if not text:
        return ""
    text = _CONTROL_CHARS.sub("", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _BLANK_LINE_RUNS.sub("\n", text)
    text = _SPACE_RUNS.sub(" ", text)
    text = text.strip()
    if len(text) > max_length:
        text = text[:max_length] + "..."
    return text


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))
