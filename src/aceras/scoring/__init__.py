"""Walkability scoring."""

from aceras.scoring.seguridad import score_seguridad
from aceras.scoring.walkability import (
    WalkabilityScore,
    score_comodidad,
    score_interesante,
    score_utilidad,
    score_walkability,
    stored_scores,
)

__all__ = [
    "WalkabilityScore",
    "score_comodidad",
    "score_interesante",
    "score_seguridad",
    "score_utilidad",
    "score_walkability",
    "stored_scores",
]
