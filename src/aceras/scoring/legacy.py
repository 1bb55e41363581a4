"""Migration helpers for rows written by the deprecated percentage scheme.

The first release stored ``seguridad_score = safety_rating * 20`` (a 0-100
percentage) and persisted unanswered ratings as ``0``. Those rows are not
comparable with the four-bucket scale, so they are detected and rescored
from their stored SEGURIDAD answers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from aceras.errors import from_pydantic
from aceras.models import SCORE_SCHEME, ReportScores, SeguridadIntake, WalkabilityBuckets
from aceras.scoring.walkability import score_walkability, stored_scores


LEGACY_RATING_FIELDS: tuple[str, ...] = (
    "width_rating",
    "comfort_space_rating",
    "lighting_rating",
    "condition_rating",
    "safety_rating",
    "accessibility_rating",
    "severity",
)


@dataclass
class LegacyRescore:
    report_id: Optional[str]
    scores: ReportScores
    buckets: WalkabilityBuckets = field(default_factory=WalkabilityBuckets)
    ratings: dict[str, Optional[int]] = field(default_factory=dict)
    cleared_fields: list[str] = field(default_factory=list)


def _value(row: Mapping[str, Any], name: str) -> Any:
    if name in row:
        return row[name]
    return row.get(to_camel(name))


def is_legacy_row(row: Mapping[str, Any]) -> bool:
    """Return True when a stored row was not scored with the bucket scheme."""
    if _value(row, "score_scheme") == SCORE_SCHEME:
        return False
    score = _value(row, "seguridad_score")
    if score is not None and float(score) > 5:
        return True
    return _value(row, "score_scheme") is None


def legacy_rating(value: Any) -> Optional[int]:
    """Legacy rows stored unanswered ratings as 0; read them back as absent."""
    if value is None or value == 0:
        return None
    return int(value)


def rescore_legacy_row(row: Mapping[str, Any]) -> LegacyRescore:
    """Rebuild the SEGURIDAD intake from a legacy row and rescore it."""
    ratings: dict[str, Optional[int]] = {}
    cleared: list[str] = []
    for name in LEGACY_RATING_FIELDS:
        raw = _value(row, name)
        ratings[name] = legacy_rating(raw)
        if raw == 0:
            cleared.append(name)

    try:
        seguridad = SeguridadIntake(
            has_sidewalk=_value(row, "has_sidewalk"),
            width_rating=ratings["width_rating"],
            obstructions=_value(row, "obstructions") or [],
            comfort_space_rating=ratings["comfort_space_rating"],
            has_lighting=_value(row, "has_lighting"),
            lighting_rating=ratings["lighting_rating"],
        )
    except ValidationError as exc:
        raise from_pydantic(exc, prefix="seguridad") from exc

    buckets = WalkabilityBuckets(seguridad=seguridad)
    return LegacyRescore(
        report_id=_value(row, "id"),
        scores=stored_scores(score_walkability(buckets)),
        buckets=buckets,
        ratings=ratings,
        cleared_fields=cleared,
    )
