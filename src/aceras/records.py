"""Report record construction and lifecycle."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ValidationError

from aceras.config import Settings
from aceras.errors import ReportValidationError, StatusTransitionError, from_pydantic
from aceras.intake.photo import check_photo
from aceras.models import (
    AIProvenance,
    PhotoAttachment,
    ReportIntake,
    ReportRecord,
    ReportStatus,
    WalkabilityBuckets,
)
from aceras.scoring.walkability import score_walkability, stored_scores
from aceras.utils.logging import get_logger
from aceras.utils.time import utc_now


logger = get_logger(__name__)

IMMUTABLE_FIELDS = frozenset({"id", "author_id", "created_at"})

# Fields of ReportIntake that may be edited after creation.
EDITABLE_FIELDS = frozenset(ReportIntake.model_fields) - {"photo"}


def build_record(
    intake: ReportIntake,
    author_id: str,
    provenance: Optional[AIProvenance] = None,
    report_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ReportRecord:
    """Score a validated intake and create a pending report record."""
    if not author_id:
        raise ReportValidationError("author_id", "missing")

    now = now or utc_now()
    scores = stored_scores(score_walkability(intake.buckets))
    record = ReportRecord(
        id=report_id or str(uuid.uuid4()),
        author_id=author_id,
        location=intake.location,
        category=intake.category,
        description=intake.description,
        severity=intake.severity,
        condition_rating=intake.condition_rating,
        safety_rating=intake.safety_rating,
        accessibility_rating=intake.accessibility_rating,
        buckets=intake.buckets,
        scores=scores,
        status=ReportStatus.PENDING,
        photo=intake.photo,
        provenance=provenance,
        created_at=now,
        updated_at=now,
    )
    logger.info(
        "record.built",
        extra={
            "report_id": record.id,
            "category": record.category,
            "total_score": scores.total,
            "ai_generated": record.ai_generated,
        },
    )
    return record


def record_intake(record: ReportRecord) -> ReportIntake:
    """Return the intake a record was built from."""
    return ReportIntake(
        location=record.location,
        category=record.category,
        description=record.description,
        severity=record.severity,
        condition_rating=record.condition_rating,
        safety_rating=record.safety_rating,
        accessibility_rating=record.accessibility_rating,
        buckets=record.buckets,
        photo=record.photo,
    )


def advance_status(
    record: ReportRecord,
    status: ReportStatus | str,
    now: Optional[datetime] = None,
) -> ReportRecord:
    """Move a report forward through pending -> verified -> resolved."""
    try:
        target = ReportStatus(status)
    except ValueError as exc:
        raise ReportValidationError("status", "unknown_status") from exc

    if target.rank <= record.status.rank:
        raise StatusTransitionError(record.status.value, target.value)

    logger.info(
        "record.status",
        extra={"report_id": record.id, "from": record.status.value, "to": target.value},
    )
    return record.model_copy(update={"status": target, "updated_at": now or utc_now()})


def _merge_model(current: BaseModel, partial: BaseModel) -> dict[str, Any]:
    """Overlay the fields explicitly given in ``partial`` onto ``current``."""
    data = current.model_dump()
    for name in partial.model_fields_set:
        new = getattr(partial, name)
        old = getattr(current, name)
        if isinstance(new, BaseModel) and type(new) is type(old):
            data[name] = _merge_model(old, new)
        else:
            data[name] = new
    return data


def update_record(
    record: ReportRecord,
    changes: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> ReportRecord:
    """Apply intake-level edits, rescore and refresh ``updated_at``.

    ``buckets`` edits are partial: only the buckets and answers given are
    replaced. Editing an AI-generated record marks it as user modified.
    """
    for key in changes:
        if key in IMMUTABLE_FIELDS:
            raise ReportValidationError(key, "immutable")
        if key not in EDITABLE_FIELDS:
            raise ReportValidationError(key, "not_editable")

    data = record_intake(record).model_dump()
    for key, value in changes.items():
        if key == "buckets" and isinstance(value, Mapping):
            try:
                partial = WalkabilityBuckets.model_validate(value)
            except ValidationError as exc:
                raise from_pydantic(exc, prefix="buckets") from exc
            data[key] = _merge_model(record.buckets, partial)
        else:
            data[key] = value

    try:
        intake = ReportIntake.model_validate(data)
    except ValidationError as exc:
        raise from_pydantic(exc) from exc

    update: dict[str, Any] = {
        name: getattr(intake, name) for name in EDITABLE_FIELDS
    }
    update["scores"] = stored_scores(score_walkability(intake.buckets))
    update["updated_at"] = now or utc_now()

    if record.provenance is not None and any(
        getattr(record, name) != getattr(intake, name) for name in changes
    ):
        update["provenance"] = record.provenance.model_copy(update={"user_modified": True})

    return record.model_copy(update=update)


def attach_photo(
    record: ReportRecord,
    photo: PhotoAttachment,
    now: Optional[datetime] = None,
    settings: Optional[Settings] = None,
) -> ReportRecord:
    """Link an uploaded photo to a record."""
    check_photo(photo, settings)
    return record.model_copy(update={"photo": photo, "updated_at": now or utc_now()})
