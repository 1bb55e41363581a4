from datetime import datetime, timedelta, timezone

import pytest

from aceras.config import Settings
from aceras.errors import PhotoFormatError, RatingRangeError, ReportValidationError, StatusTransitionError
from aceras.intake.gate import IntakeGate, validate
from aceras.models import AIProvenance, PhotoAttachment, ReportStatus
from aceras.records import advance_status, attach_photo, build_record, update_record


NOW = datetime(2026, 5, 4, 10, 30, tzinfo=timezone.utc)
LATER = NOW + timedelta(hours=2)


def _base_intake(**overrides):
    payload = {
        "location": {"lat": 4.711, "lng": -74.0721},
        "category": "obstruction_vehicle",
        "description": "Carros sobre la banqueta",
        "severity": 3,
        "conditionRating": 3,
        "accessibilityRating": 2,
        "buckets": {
            "seguridad": {
                "hasSidewalk": True,
                "widthRating": 4,
                "obstructions": ["carros_mal_estacionados"],
                "comfortSpaceRating": 3,
                "hasLighting": True,
                "lightingRating": 4,
            },
            "interesante": {"hasCommerce": True, "commerceCount": 4, "vibeRating": 4},
        },
    }
    payload.update(overrides)
    return validate(payload, IntakeGate(Settings()))


def _base_record(**kwargs):
    return build_record(_base_intake(), author_id="user-1", now=NOW, **kwargs)


def test_build_record_is_pending_and_scored():
    record = _base_record()
    assert record.status == ReportStatus.PENDING
    assert record.verified is False
    assert record.ai_generated is False
    assert record.created_at == record.updated_at == NOW
    assert record.scores.seguridad == 4.25
    assert record.scores.comodidad == 1.0
    assert record.scores.interesante == 2.0
    assert record.scores.total == 7.25


def test_build_record_assigns_unique_ids():
    assert _base_record().id != _base_record().id
    assert _base_record(report_id="r-1").id == "r-1"


def test_build_record_requires_author():
    with pytest.raises(ReportValidationError):
        build_record(_base_intake(), author_id="")


def test_advance_status_forward():
    record = advance_status(_base_record(), "verified", now=LATER)
    assert record.status == ReportStatus.VERIFIED
    assert record.verified is True
    assert record.created_at == NOW
    assert record.updated_at == LATER

    resolved = advance_status(record, ReportStatus.RESOLVED, now=LATER)
    assert resolved.status == ReportStatus.RESOLVED
    assert resolved.verified is True


def test_advance_status_may_skip_verification():
    record = advance_status(_base_record(), ReportStatus.RESOLVED)
    assert record.status == ReportStatus.RESOLVED


@pytest.mark.parametrize("start, target", [("verified", "pending"), ("verified", "verified"), ("resolved", "verified")])
def test_advance_status_rejects_non_forward(start, target):
    record = _base_record().model_copy(update={"status": ReportStatus(start)})
    with pytest.raises(StatusTransitionError):
        advance_status(record, target)


def test_advance_status_rejects_unknown_status():
    with pytest.raises(ReportValidationError) as excinfo:
        advance_status(_base_record(), "archived")
    assert excinfo.value.reason == "unknown_status"


def test_update_record_rescores_and_keeps_identity():
    record = _base_record()
    updated = update_record(
        record,
        {"buckets": {"seguridad": {"hasSidewalk": False}}, "description": "Ya no hay banqueta"},
        now=LATER,
    )
    assert updated.id == record.id
    assert updated.author_id == record.author_id
    assert updated.created_at == NOW
    assert updated.updated_at == LATER
    assert updated.description == "Ya no hay banqueta"
    assert updated.scores.seguridad == 3.25
    assert updated.scores.interesante == 2.0


def test_update_record_keeps_unedited_answers():
    record = _base_record()
    updated = update_record(record, {"buckets": {"seguridad": {"widthRating": 2}}})
    seguridad = updated.buckets.seguridad
    assert seguridad.width_rating == 2
    assert seguridad.has_sidewalk is True
    assert seguridad.obstructions == frozenset({"carros_mal_estacionados"})
    assert seguridad.lighting_rating == 4
    assert updated.buckets.interesante == record.buckets.interesante
    assert updated.scores.seguridad == 3.25
    assert updated.scores.interesante == 2.0
    assert updated.scores.total == 6.25


def test_update_record_adds_new_bucket_answers():
    updated = update_record(_base_record(), {"buckets": {"comodidad": {"shadeRating": 5}}})
    assert updated.buckets.comodidad.shade_rating == 5
    assert updated.scores.comodidad == 2.0
    assert updated.scores.seguridad == 4.25


def test_update_record_reports_bucket_field_path():
    with pytest.raises(RatingRangeError) as excinfo:
        update_record(_base_record(), {"buckets": {"seguridad": {"widthRating": 0}}})
    assert excinfo.value.field == "buckets.seguridad.width_rating"


@pytest.mark.parametrize("field", ["id", "author_id", "created_at"])
def test_update_record_rejects_immutable_fields(field):
    with pytest.raises(ReportValidationError) as excinfo:
        update_record(_base_record(), {field: "x"})
    assert excinfo.value.reason == "immutable"


def test_update_record_rejects_unknown_fields():
    with pytest.raises(ReportValidationError) as excinfo:
        update_record(_base_record(), {"scores": {}})
    assert excinfo.value.reason == "not_editable"


def test_update_record_validates_ratings():
    with pytest.raises(RatingRangeError):
        update_record(_base_record(), {"severity": 9})


def test_update_record_marks_ai_record_modified():
    provenance = AIProvenance(ai_confidence=0.7, ai_model="gpt-4o-mini")
    record = _base_record(provenance=provenance)
    assert record.ai_generated is True

    unchanged = update_record(record, {"severity": 3})
    assert unchanged.provenance.user_modified is False

    changed = update_record(record, {"severity": 5})
    assert changed.provenance.user_modified is True
    assert changed.provenance.ai_confidence == 0.7


def test_attach_photo():
    photo = PhotoAttachment(content_type="image/webp", size_bytes=200, path="reports/1.webp")
    record = attach_photo(_base_record(), photo, now=LATER, settings=Settings(PHOTO_MAX_BYTES=500))
    assert record.photo.path == "reports/1.webp"
    assert record.updated_at == LATER


def test_attach_photo_rejects_oversized():
    photo = PhotoAttachment(content_type="image/png", size_bytes=900)
    with pytest.raises(PhotoFormatError):
        attach_photo(_base_record(), photo, settings=Settings(PHOTO_MAX_BYTES=500))
