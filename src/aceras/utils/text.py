"""Text helpers."""

from __future__ import annotations

import re
import unicodedata


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace and trim."""
    return re.sub(r"\s+", " ", text).strip()


def normalize_tag(text: str) -> str:
    """Normalize a free-form tag to a lowercase snake_case identifier.

    Accents are folded, so "Construcción" and "construccion" match.
    """
    value = unicodedata.normalize("NFKD", normalize_whitespace(text))
    value = "".join(char for char in value if not unicodedata.combining(char)).lower()
    value = re.sub(r"[\s/\-]+", "_", value)
    return re.sub(r"[^\w]", "", value)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence if present."""
    value = text.strip()
    if value.startswith("```"):
        lines = value.splitlines()
        if lines and lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].startswith("```"):
            lines = lines[:-1]
        value = "\n".join(lines).strip()
    return value
