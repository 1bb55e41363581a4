"""Four-bucket walkability score (0-10)."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from aceras.errors import ScoreRangeError
from aceras.models import (
    ComodidadIntake,
    InteresanteIntake,
    ReportScores,
    UtilidadIntake,
    WalkabilityBuckets,
)
from aceras.scoring.seguridad import SEGURIDAD_MAX, score_seguridad, tiered_rating


UTILIDAD_MAX = 1.0
COMODIDAD_MAX = 2.0
INTERESANTE_MAX = 2.0
TOTAL_MAX = UTILIDAD_MAX + SEGURIDAD_MAX + COMODIDAD_MAX + INTERESANTE_MAX

BUCKET_MAX: dict[str, float] = {
    "utilidad": UTILIDAD_MAX,
    "seguridad": SEGURIDAD_MAX,
    "comodidad": COMODIDAD_MAX,
    "interesante": INTERESANTE_MAX,
}

AMENITY_WEIGHT = 0.2
CONTAMINANT_PENALTY = 0.3
SEVERE_CONTAMINATION_PENALTY = 0.2
SEVERE_CONTAMINATION_THRESHOLD = 4
BUSY_COMMERCE_COUNT = 3


@dataclass(frozen=True)
class WalkabilityScore:
    """Unrounded bucket scores; ``total`` is their exact sum."""

    utilidad: float
    seguridad: float
    comodidad: float
    interesante: float

    @property
    def total(self) -> float:
        return self.utilidad + self.seguridad + self.comodidad + self.interesante

    def as_dict(self) -> dict[str, float]:
        return {
            "utilidad": self.utilidad,
            "seguridad": self.seguridad,
            "comodidad": self.comodidad,
            "interesante": self.interesante,
            "total": self.total,
        }


def score_utilidad(intake: UtilidadIntake) -> float:
    toggled = sum(1 for enabled in intake.amenities.values() if enabled is True)
    return min(UTILIDAD_MAX, AMENITY_WEIGHT * toggled)


def score_comodidad(intake: ComodidadIntake) -> float:
    severity = intake.contamination_severity
    severe = severity is not None and severity >= SEVERE_CONTAMINATION_THRESHOLD
    contamination = (
        1.0
        - CONTAMINANT_PENALTY * len(frozenset(intake.contaminants))
        - (SEVERE_CONTAMINATION_PENALTY if severe else 0.0)
    )
    return min(COMODIDAD_MAX, tiered_rating(intake.shade_rating) + max(0.0, contamination))


def score_interesante(intake: InteresanteIntake) -> float:
    score = 0.0
    if intake.has_commerce is True:
        score += 1.0
        if intake.commerce_count >= BUSY_COMMERCE_COUNT:
            score += 0.5
    vibe = intake.vibe_rating or 0
    score += min(1.0, max(0.0, vibe / 5))
    return min(INTERESANTE_MAX, score)


def score_walkability(buckets: WalkabilityBuckets) -> WalkabilityScore:
    """Score all four buckets of a walkability intake."""
    return WalkabilityScore(
        utilidad=score_utilidad(buckets.utilidad),
        seguridad=score_seguridad(buckets.seguridad),
        comodidad=score_comodidad(buckets.comodidad),
        interesante=score_interesante(buckets.interesante),
    )


def round_score(value: float, digits: int = 2) -> float:
    """Round half-up to ``digits`` decimals (Python's round() is half-even)."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def stored_scores(score: WalkabilityScore) -> ReportScores:
    """Round bucket scores for storage; the stored total is their sum.

    Raises ScoreRangeError if any bucket left its documented range, so an
    out-of-range value never reaches the persistence collaborator.
    """
    buckets = {
        name: round_score(value)
        for name, value in score.as_dict().items()
        if name != "total"
    }
    for name, value in buckets.items():
        if not 0 <= value <= BUCKET_MAX[name]:
            raise ScoreRangeError(name, value, BUCKET_MAX[name])
    total = round_score(sum(buckets.values()))
    return ReportScores(total=total, **buckets)
