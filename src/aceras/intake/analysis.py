"""Vision-model sidewalk analysis: schema and parsing of untrusted output."""

from __future__ import annotations

from typing import Any, Literal, Optional, Union

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from aceras.config import Settings
from aceras.errors import ReportValidationError, from_pydantic
from aceras.models import Rating
from aceras.utils.text import strip_code_fences


class SidewalkAnalysis(BaseModel):
    """Structured assessment returned by the vision collaborator."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    # Detection confidence
    confidence: float = Field(ge=0, le=1)
    sidewalk_visible: bool = True

    # SEGURIDAD fields
    has_sidewalk: Optional[bool] = None
    sidewalk_width: Optional[Literal["narrow", "adequate", "wide"]] = None
    width_rating: Optional[Rating] = None
    obstructions: list[str] = Field(default_factory=list)
    has_lighting: Optional[bool] = None
    lighting_rating: Optional[Rating] = None

    # Condition assessment
    condition_rating: Optional[Rating] = None
    safety_rating: Optional[Rating] = None
    accessibility_rating: Optional[Rating] = None

    description: str = ""
    detected_issues: list[str] = Field(default_factory=list)

    # Quality feedback
    image_quality: Literal["good", "acceptable", "poor"] = "acceptable"
    quality_issues: list[str] = Field(default_factory=list)
    retake_recommended: bool = False


def extract_json_object(text: str) -> dict[str, Any]:
    """Extract the first JSON object from model output text."""
    candidate = strip_code_fences(text or "")
    try:
        parsed = orjson.loads(candidate)
    except orjson.JSONDecodeError:
        start = candidate.find("{")
        end = candidate.rfind("}")
        if start < 0 or end <= start:
            raise ReportValidationError("analysis", "invalid_json")
        try:
            parsed = orjson.loads(candidate[start : end + 1])
        except orjson.JSONDecodeError as exc:
            raise ReportValidationError("analysis", "invalid_json") from exc

    if not isinstance(parsed, dict):
        raise ReportValidationError("analysis", "not_an_object")
    return parsed


def _decode(payload: Union[str, bytes]) -> str:
    if isinstance(payload, bytes):
        try:
            return payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ReportValidationError("analysis", "invalid_encoding") from exc
    return payload


def _payload_object(payload: Union[str, bytes, dict[str, Any]]) -> dict[str, Any]:
    if isinstance(payload, (str, bytes)):
        return extract_json_object(_decode(payload))
    if not isinstance(payload, dict):
        raise ReportValidationError("analysis", "not_an_object")
    return payload


def parse_analysis(payload: Union[str, bytes, dict[str, Any]]) -> SidewalkAnalysis:
    """Validate a vision payload (raw text or decoded JSON) into an analysis.

    Accepts both the bare analysis object and the proxy envelope
    ``{"success": true, "analysis": {...}, "model": ...}``.
    """
    data = _payload_object(payload)
    if isinstance(data.get("analysis"), dict):
        data = data["analysis"]

    try:
        return SidewalkAnalysis.model_validate(data)
    except ValidationError as exc:
        raise from_pydantic(exc, prefix="analysis") from exc


def envelope_model(payload: Union[str, bytes, dict[str, Any]]) -> Optional[str]:
    """Return the model id reported by the proxy envelope, if any."""
    try:
        data = _payload_object(payload)
    except ReportValidationError:
        return None
    model = data.get("model")
    return model if isinstance(model, str) and model else None


def needs_retake(analysis: SidewalkAnalysis, settings: Optional[Settings] = None) -> bool:
    """Return True when the photo should be retaken before review."""
    settings = settings or Settings()
    return (
        analysis.retake_recommended
        or not analysis.sidewalk_visible
        or analysis.image_quality == "poor"
        or analysis.confidence < settings.ai_retake_confidence_threshold
    )
