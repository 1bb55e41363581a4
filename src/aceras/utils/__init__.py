"""Utility helpers."""

from aceras.utils.hashing import hash_payload, hash_text
from aceras.utils.logging import configure_logging, get_logger
from aceras.utils.text import normalize_tag, normalize_whitespace
from aceras.utils.time import parse_timestamp, utc_now

__all__ = [
    "hash_payload",
    "hash_text",
    "configure_logging",
    "get_logger",
    "normalize_tag",
    "normalize_whitespace",
    "parse_timestamp",
    "utc_now",
]
