"""Hashing helpers for AI payload tracking."""

from __future__ import annotations

import hashlib
from typing import Any, Mapping, Union

import orjson


def hash_text(value: str) -> str:
    """Return a short SHA-256 hash for the provided text."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:12]


def hash_payload(value: Union[str, bytes, Mapping[str, Any]]) -> str:
    """Hash a model response independent of key order and formatting.

    Text that is not a JSON document is hashed as-is.
    """
    if isinstance(value, (str, bytes)):
        try:
            value = orjson.loads(value)
        except orjson.JSONDecodeError:
            return hash_text(value.decode("utf-8") if isinstance(value, bytes) else value)
    return hash_text(orjson.dumps(value, option=orjson.OPT_SORT_KEYS).decode("utf-8"))
