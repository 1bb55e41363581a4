"""Report table reads and writes."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from psycopg import Cursor
from psycopg.types.json import Jsonb

from aceras.models import (
    SCORE_SCHEME,
    STATUS_ORDER,
    AIProvenance,
    PhotoAttachment,
    ReportLocation,
    ReportRecord,
    ReportScores,
    ReportStatus,
    WalkabilityBuckets,
)
from aceras.scoring.legacy import LegacyRescore
from aceras.utils.hashing import hash_payload
from aceras.utils.logging import get_logger
from aceras.utils.time import parse_timestamp, utc_now


logger = get_logger(__name__)

REPORT_COLUMNS: tuple[str, ...] = (
    "id",
    "author_id",
    "lat",
    "lng",
    "address_label",
    "road_name",
    "category",
    "description",
    "severity",
    "condition_rating",
    "safety_rating",
    "accessibility_rating",
    "has_sidewalk",
    "width_rating",
    "obstructions",
    "comfort_space_rating",
    "has_lighting",
    "lighting_rating",
    "buckets",
    "utilidad_score",
    "seguridad_score",
    "comodidad_score",
    "interesante_score",
    "total_score",
    "score_scheme",
    "status",
    "verified",
    "photo_path",
    "photo_url",
    "photo_content_type",
    "ai_generated",
    "ai_confidence",
    "ai_model",
    "user_modified",
    "ai_processed_at",
    "ai_raw_response",
    "ai_response_hash",
    "created_at",
    "updated_at",
)

JSON_COLUMNS = frozenset({"obstructions", "buckets"})

SEGURIDAD_COLUMNS: tuple[str, ...] = (
    "has_sidewalk",
    "width_rating",
    "obstructions",
    "comfort_space_rating",
    "has_lighting",
    "lighting_rating",
)


def report_row(record: ReportRecord) -> dict[str, Any]:
    """Flatten a record into the key-value row handed to storage."""
    seguridad = record.buckets.seguridad
    photo = record.photo
    provenance = record.provenance
    raw_response = provenance.ai_raw_response if provenance else None

    return {
        "id": record.id,
        "author_id": record.author_id,
        "lat": record.location.lat,
        "lng": record.location.lng,
        "address_label": record.location.address_label,
        "road_name": record.location.road_name,
        "category": record.category,
        "description": record.description,
        "severity": record.severity,
        "condition_rating": record.condition_rating,
        "safety_rating": record.safety_rating,
        "accessibility_rating": record.accessibility_rating,
        "has_sidewalk": seguridad.has_sidewalk,
        "width_rating": seguridad.width_rating,
        "obstructions": sorted(seguridad.obstructions),
        "comfort_space_rating": seguridad.comfort_space_rating,
        "has_lighting": seguridad.has_lighting,
        "lighting_rating": seguridad.lighting_rating,
        "buckets": record.buckets.model_dump(mode="json"),
        "utilidad_score": record.scores.utilidad,
        "seguridad_score": record.scores.seguridad,
        "comodidad_score": record.scores.comodidad,
        "interesante_score": record.scores.interesante,
        "total_score": record.scores.total,
        "score_scheme": record.scores.scheme,
        "status": record.status.value,
        "verified": record.verified,
        "photo_path": photo.path if photo else None,
        "photo_url": photo.url if photo else None,
        "photo_content_type": photo.content_type if photo else None,
        "ai_generated": record.ai_generated,
        "ai_confidence": provenance.ai_confidence if provenance else None,
        "ai_model": provenance.ai_model if provenance else None,
        "user_modified": provenance.user_modified if provenance else False,
        "ai_processed_at": provenance.ai_processed_at if provenance else None,
        "ai_raw_response": raw_response,
        "ai_response_hash": hash_payload(raw_response) if raw_response else None,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }


def _row_buckets(row: Mapping[str, Any]) -> WalkabilityBuckets:
    data = dict(row.get("buckets") or {})
    # Rows written before the questionnaire was stored keep SEGURIDAD flat.
    if "seguridad" not in data:
        data["seguridad"] = {
            name: row[name] for name in SEGURIDAD_COLUMNS if row.get(name) is not None
        }
    return WalkabilityBuckets.model_validate(data)


def record_from_row(row: Mapping[str, Any]) -> ReportRecord:
    """Rebuild a record from a stored bucket-scheme row."""
    photo = None
    if row.get("photo_content_type"):
        photo = PhotoAttachment(
            content_type=row["photo_content_type"],
            path=row.get("photo_path"),
            url=row.get("photo_url"),
        )

    provenance = None
    if row.get("ai_generated"):
        provenance = AIProvenance(
            ai_confidence=row["ai_confidence"],
            ai_model=row["ai_model"],
            user_modified=bool(row.get("user_modified")),
            ai_processed_at=parse_timestamp(row.get("ai_processed_at")),
            ai_raw_response=row.get("ai_raw_response"),
        )

    return ReportRecord(
        id=str(row["id"]),
        author_id=str(row["author_id"]),
        location=ReportLocation(
            lat=row["lat"],
            lng=row["lng"],
            address_label=row.get("address_label"),
            road_name=row.get("road_name"),
        ),
        category=row["category"],
        description=row["description"],
        severity=row.get("severity"),
        condition_rating=row.get("condition_rating"),
        safety_rating=row.get("safety_rating"),
        accessibility_rating=row.get("accessibility_rating"),
        buckets=_row_buckets(row),
        scores=ReportScores(
            utilidad=row["utilidad_score"],
            seguridad=row["seguridad_score"],
            comodidad=row["comodidad_score"],
            interesante=row["interesante_score"],
            total=row["total_score"],
        ),
        status=ReportStatus(row["status"]),
        photo=photo,
        provenance=provenance,
        created_at=parse_timestamp(row["created_at"]),
        updated_at=parse_timestamp(row["updated_at"]),
    )


def insert_report(cursor: Cursor, record: ReportRecord, dry_run: bool = False) -> bool:
    """Insert a new report; a report id is only ever written once."""
    row = report_row(record)
    if dry_run:
        logger.info("insert_report.dry_run report_id=%s", record.id)
        return False

    values = [Jsonb(row[name]) if name in JSON_COLUMNS else row[name] for name in REPORT_COLUMNS]
    placeholders = ",".join(["%s"] * len(REPORT_COLUMNS))
    cursor.execute(
        f"insert into reports ({', '.join(REPORT_COLUMNS)}) values ({placeholders}) "
        "on conflict (id) do nothing",
        values,
    )
    inserted = bool(cursor.rowcount)
    if not inserted:
        logger.warning("insert_report.exists report_id=%s", record.id)
    return inserted


def update_report_status(cursor: Cursor, record: ReportRecord) -> bool:
    """Persist a lifecycle change; stored rows never move backwards."""
    earlier = [status.value for status in STATUS_ORDER[: record.status.rank]]
    cursor.execute(
        "update reports set status = %s, verified = %s, updated_at = %s "
        "where id = %s and status = any(%s)",
        (record.status.value, record.verified, record.updated_at, record.id, earlier),
    )
    return bool(cursor.rowcount)


def fetch_report(cursor: Cursor, report_id: str) -> Optional[ReportRecord]:
    cursor.execute(
        f"select {', '.join(REPORT_COLUMNS)} from reports where id = %s",
        (report_id,),
    )
    row = cursor.fetchone()
    if row is None:
        return None
    return record_from_row(row)


def fetch_legacy_rows(cursor: Cursor, limit: Optional[int] = None) -> list[dict[str, Any]]:
    """Select rows not yet scored with the bucket scheme, oldest first."""
    query = (
        "select * from reports "
        "where score_scheme is distinct from %s or seguridad_score > 5 "
        "order by created_at"
    )
    params: list[object] = [SCORE_SCHEME]
    if limit is not None:
        query += " limit %s"
        params.append(limit)
    cursor.execute(query, params)
    return [dict(row) for row in cursor.fetchall()]


def rescored_columns(rescore: LegacyRescore, now: Optional[datetime] = None) -> dict[str, Any]:
    """Column values that move a legacy row onto the bucket scheme.

    Legacy zero ratings are cleared and the rebuilt answers are stored in
    ``buckets`` so the row reads back consistent with its scores.
    """
    scores = rescore.scores
    columns: dict[str, Any] = {
        "utilidad_score": scores.utilidad,
        "seguridad_score": scores.seguridad,
        "comodidad_score": scores.comodidad,
        "interesante_score": scores.interesante,
        "total_score": scores.total,
        "score_scheme": scores.scheme,
        "buckets": rescore.buckets.model_dump(mode="json"),
        "updated_at": now or utc_now(),
    }
    for name in rescore.cleared_fields:
        columns[name] = None
    return columns


def write_rescored(
    cursor: Cursor,
    rescore: LegacyRescore,
    now: Optional[datetime] = None,
) -> bool:
    """Store canonical scores for a migrated legacy row."""
    columns = rescored_columns(rescore, now)
    assignments = ", ".join(f"{name} = %s" for name in columns)
    params = [Jsonb(value) if name in JSON_COLUMNS else value for name, value in columns.items()]
    params.append(rescore.report_id)
    cursor.execute(f"update reports set {assignments} where id = %s", params)
    return bool(cursor.rowcount)
