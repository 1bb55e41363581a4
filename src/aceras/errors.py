"""Error taxonomy for report intake, scoring handoff and lifecycle."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError
from pydantic.alias_generators import to_snake

RANGE_ERROR_TYPES = {
    "greater_than",
    "greater_than_equal",
    "less_than",
    "less_than_equal",
}


class ReportError(Exception):
    """Base class for all report core errors."""


class ReportValidationError(ReportError, ValueError):
    """A required field is missing, malformed or outside its vocabulary."""

    def __init__(self, field: str, reason: str, message: Optional[str] = None) -> None:
        self.field = field
        self.reason = reason
        super().__init__(message or f"{field}: {reason}")


class RatingRangeError(ReportError, ValueError):
    """A rating or count lies outside its documented domain."""

    def __init__(self, field: str, value: Any, message: Optional[str] = None) -> None:
        self.field = field
        self.value = value
        self.reason = "out_of_range"
        super().__init__(message or f"{field}: value {value!r} out of range")


class PhotoFormatError(ReportValidationError):
    """Photo attachment is not a supported image encoding."""


class ScoreRangeError(ReportError):
    """A derived score is outside its bucket range."""

    def __init__(self, bucket: str, value: float, upper: float) -> None:
        self.bucket = bucket
        self.value = value
        self.upper = upper
        super().__init__(f"{bucket} score {value!r} outside [0, {upper}]")


class StatusTransitionError(ReportError):
    """A lifecycle change that does not move the report forward."""

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move report from {current!r} to {requested!r}")


def _field_path(prefix: str, loc: tuple[Any, ...]) -> str:
    parts = [prefix] if prefix else []
    parts.extend(to_snake(part) if isinstance(part, str) else str(part) for part in loc)
    return ".".join(parts) or "payload"


def from_pydantic(exc: ValidationError, prefix: str = "") -> ReportError:
    """Translate the first pydantic error into the report taxonomy."""
    errors = exc.errors()
    if not errors:
        return ReportValidationError(prefix or "payload", "invalid")

    first = errors[0]
    field = _field_path(prefix, tuple(first.get("loc", ())))
    error_type = first.get("type", "")

    # Field validators raise taxonomy errors; pydantic wraps them as value_error.
    inner = (first.get("ctx") or {}).get("error")
    if isinstance(inner, ReportValidationError):
        return type(inner)(field, inner.reason, message=str(inner))

    if error_type in RANGE_ERROR_TYPES:
        return RatingRangeError(field, first.get("input"), message=f"{field}: {first.get('msg')}")
    if error_type == "missing":
        return ReportValidationError(field, "missing")
    return ReportValidationError(
        field, error_type or "invalid", message=f"{field}: {first.get('msg')}"
    )
