"""Merge an AI draft with the user's review edits."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

import orjson
from pydantic import ValidationError
from pydantic.alias_generators import to_snake

from aceras.config import Settings
from aceras.errors import ReportValidationError, from_pydantic
from aceras.intake.analysis import SidewalkAnalysis
from aceras.intake.gate import IntakeGate, validate
from aceras.intake.vocabulary import OBSTRUCTION_ALIASES, OBSTRUCTIONS, canonical_tag
from aceras.models import AIProvenance, PhotoAttachment, ReportIntake, ReportLocation
from aceras.utils.logging import get_logger
from aceras.utils.text import normalize_whitespace
from aceras.utils.time import utc_now


logger = get_logger(__name__)

# Order carries no meaning for these fields.
UNORDERED_FIELDS = frozenset({"obstructions", "detected_issues", "quality_issues"})

OBSTRUCTION_CATEGORIES: dict[str, str] = {
    "carros_mal_estacionados": "obstruction_vehicle",
    "vendedores": "obstruction_vendor",
    "construccion": "obstruction_construction",
    "invasion_comercial": "obstruction_business",
}


@dataclass(frozen=True)
class ReconciledDraft:
    """Result of a review: the draft snapshot, the merged analysis and the diff."""

    draft: SidewalkAnalysis
    analysis: SidewalkAnalysis
    changed_fields: tuple[str, ...]

    @property
    def user_modified(self) -> bool:
        return bool(self.changed_fields)


def _comparable(name: str, value: Any) -> Any:
    if name in UNORDERED_FIELDS:
        return frozenset(normalize_whitespace(item) for item in value)
    if isinstance(value, str):
        return normalize_whitespace(value)
    return value


def _edit_key(key: str) -> str:
    name = to_snake(key)
    if name not in SidewalkAnalysis.model_fields:
        raise ReportValidationError(f"edits.{key}", "unknown_field")
    return name


def reconcile(draft: SidewalkAnalysis, user_edits: Mapping[str, Any]) -> ReconciledDraft:
    """Apply user edits to an AI draft and diff them field by field.

    ``draft`` must be the snapshot taken when review started. Setting a field
    to the value the model proposed does not count as a modification.
    """
    edits = {_edit_key(key): value for key, value in user_edits.items()}
    merged_data = draft.model_dump()
    merged_data.update(edits)

    try:
        merged = SidewalkAnalysis.model_validate(merged_data)
    except ValidationError as exc:
        raise from_pydantic(exc, prefix="edits") from exc

    changed = tuple(
        name
        for name in SidewalkAnalysis.model_fields
        if _comparable(name, getattr(draft, name)) != _comparable(name, getattr(merged, name))
    )
    logger.info(
        "draft.reconciled",
        extra={"edited": sorted(edits), "changed": list(changed)},
    )
    return ReconciledDraft(draft=draft, analysis=merged, changed_fields=changed)


class DraftReview:
    """Collects edits against a snapshot of the draft taken at review start."""

    def __init__(self, draft: SidewalkAnalysis) -> None:
        self.snapshot = draft.model_copy(deep=True)
        self.edits: dict[str, Any] = {}

    def edit(self, field: str, value: Any) -> None:
        self.edits[_edit_key(field)] = value

    def submit(self) -> ReconciledDraft:
        return reconcile(self.snapshot, self.edits)


def suggest_category(analysis: SidewalkAnalysis) -> str:
    """Pick the report category that best matches an analysis."""
    if analysis.has_sidewalk is False:
        return "missing_sidewalk"

    tags: set[str] = set()
    for item in analysis.obstructions:
        try:
            tags.add(canonical_tag(item, OBSTRUCTIONS, OBSTRUCTION_ALIASES, "obstructions"))
        except ReportValidationError:
            continue
    for tag, category in OBSTRUCTION_CATEGORIES.items():
        if tag in tags:
            return category

    def poor(rating: Optional[int]) -> bool:
        return rating is not None and rating <= 2

    if "huecos" in tags or poor(analysis.condition_rating):
        return "broken_pavement"
    if analysis.sidewalk_width == "narrow" or poor(analysis.width_rating):
        return "narrow_sidewalk"
    if analysis.has_lighting is False or (analysis.has_lighting and poor(analysis.lighting_rating)):
        return "poor_lighting"
    if poor(analysis.accessibility_rating):
        return "accessibility_issue"

    ratings = [
        analysis.condition_rating,
        analysis.safety_rating,
        analysis.accessibility_rating,
        analysis.width_rating,
    ]
    if all(rating is not None and rating >= 4 for rating in ratings):
        return "positive_feedback"
    return "safety_concern"


def draft_to_intake(
    reconciled: ReconciledDraft,
    location: ReportLocation | Mapping[str, Any],
    category: Optional[str] = None,
    photo: Optional[PhotoAttachment | Mapping[str, Any]] = None,
    model_id: Optional[str] = None,
    processed_at: Optional[datetime] = None,
    settings: Optional[Settings] = None,
) -> tuple[ReportIntake, AIProvenance]:
    """Forward a reconciled draft through the intake gate.

    Returns the validated intake and the provenance to store on the record.
    """
    settings = settings or Settings()
    analysis = reconciled.analysis
    if isinstance(location, ReportLocation):
        location = location.model_dump()
    if isinstance(photo, PhotoAttachment):
        photo = photo.model_dump()

    raw: dict[str, Any] = {
        "location": location,
        "category": category or suggest_category(analysis),
        "description": analysis.description,
        "condition_rating": analysis.condition_rating,
        "safety_rating": analysis.safety_rating,
        "accessibility_rating": analysis.accessibility_rating,
        "buckets": {
            "seguridad": {
                "has_sidewalk": analysis.has_sidewalk,
                "width_rating": analysis.width_rating,
                "obstructions": analysis.obstructions,
                "has_lighting": analysis.has_lighting,
                "lighting_rating": analysis.lighting_rating,
            }
        },
    }
    if photo is not None:
        raw["photo"] = photo

    intake = validate(raw, IntakeGate(settings))
    provenance = AIProvenance(
        ai_confidence=reconciled.draft.confidence,
        ai_model=model_id or settings.ai_model_id,
        user_modified=reconciled.user_modified,
        ai_processed_at=processed_at or utc_now(),
        ai_raw_response=orjson.dumps(
            reconciled.draft.model_dump(mode="json", by_alias=True)
        ).decode("utf-8"),
    )
    return intake, provenance
