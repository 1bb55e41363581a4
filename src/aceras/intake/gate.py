"""Validation gate for report intake (manual form or AI draft)."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import ValidationError

from aceras.config import Settings
from aceras.errors import ReportError, ReportValidationError, from_pydantic
from aceras.intake.completeness import missing_fields
from aceras.intake.photo import check_photo
from aceras.models import AcceptDecision, RejectDecision, ReportIntake
from aceras.utils.logging import get_logger


logger = get_logger(__name__)

LOCATION_KEYS = ("lat", "lng", "addressLabel", "address_label", "roadName", "road_name")


def _with_location(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Accept flat ``lat``/``lng`` keys as written by the map client."""
    payload = dict(raw)
    if "location" not in payload and ("lat" in payload or "lng" in payload):
        payload["location"] = {key: payload.pop(key) for key in LOCATION_KEYS if key in payload}
    return payload


class IntakeGate:
    """Evaluate raw intake payloads and enforce the submission rules."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()

    def evaluate(self, raw: Mapping[str, Any]) -> AcceptDecision | RejectDecision:
        """Evaluate a raw payload and return an accept/reject decision."""
        if not isinstance(raw, Mapping):
            error = ReportValidationError("payload", "not_an_object")
            return self._reject({}, error)

        payload = _with_location(raw)
        if "location" not in payload:
            return self._reject(raw, ReportValidationError("location", "missing_coords"))

        try:
            intake = ReportIntake.model_validate(payload)
        except ValidationError as exc:
            return self._reject(raw, from_pydantic(exc))

        if intake.photo is not None:
            try:
                check_photo(intake.photo, self.settings)
            except ReportError as exc:
                return self._reject(raw, exc)

        review_reason = None
        review_details: dict[str, Any] = {}
        missing = missing_fields(intake)
        if missing:
            review_reason = "incomplete"
            review_details = {"missing": missing}

        return AcceptDecision(
            raw=dict(raw),
            intake=intake,
            review_reason=review_reason,
            review_details=review_details,
        )

    def _reject(self, raw: Mapping[str, Any], error: ReportError) -> RejectDecision:
        field = getattr(error, "field", "payload")
        reason = getattr(error, "reason", "invalid")
        logger.info("intake.rejected", extra={"field": field, "reason": reason})
        return RejectDecision(
            raw=dict(raw),
            reason=reason,
            field=field,
            error=error,
            details={"message": str(error)},
        )


_DEFAULT_GATE: Optional[IntakeGate] = None


def _default_gate() -> IntakeGate:
    global _DEFAULT_GATE
    if _DEFAULT_GATE is None:
        _DEFAULT_GATE = IntakeGate()
    return _DEFAULT_GATE


def evaluate(raw: Mapping[str, Any]) -> AcceptDecision | RejectDecision:
    """Convenience evaluate wrapper using default settings."""
    return _default_gate().evaluate(raw)


def validate(raw: Mapping[str, Any], gate: Optional[IntakeGate] = None) -> ReportIntake:
    """Validate a raw payload, raising the report error on rejection."""
    decision = (gate or _default_gate()).evaluate(raw)
    if isinstance(decision, RejectDecision):
        raise decision.error
    return decision.intake
