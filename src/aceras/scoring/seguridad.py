"""SEGURIDAD (safety) bucket: 0-5 points.

Five independent sub-scores of at most one point each:

1. Sidewalk exists: 1
2. Width rating: >=4 -> 1, 3 -> 0.5, else 0
3. Obstructions: 1 minus 0.25 per distinct obstruction, floored at 0
4. Comfort space (buffer from traffic): same tiers as width
5. Lighting, only when lighting exists: >=4 -> 1, 2-3 -> 0.5, else 0
"""

from __future__ import annotations

from typing import Optional

from aceras.models import SeguridadIntake


SEGURIDAD_MAX = 5.0
OBSTRUCTION_PENALTY = 0.25


def tiered_rating(rating: Optional[int]) -> float:
    """Shared width/comfort/shade tiering: >=4 -> 1, 3 -> 0.5, else 0."""
    if rating is None:
        return 0.0
    if rating >= 4:
        return 1.0
    if rating == 3:
        return 0.5
    return 0.0


def obstruction_term(obstructions: frozenset[str]) -> float:
    return max(0.0, 1.0 - OBSTRUCTION_PENALTY * len(obstructions))


def lighting_term(has_lighting: Optional[bool], lighting_rating: Optional[int]) -> float:
    # A stale rating left over from a "yes" answer must not count after "no".
    if has_lighting is not True or lighting_rating is None:
        return 0.0
    if lighting_rating >= 4:
        return 1.0
    if lighting_rating >= 2:
        return 0.5
    return 0.0


def score_seguridad(intake: SeguridadIntake) -> float:
    """Score a SEGURIDAD intake on the 0-5 scale."""
    sidewalk = 1.0 if intake.has_sidewalk is True else 0.0
    score = (
        sidewalk
        + tiered_rating(intake.width_rating)
        + obstruction_term(frozenset(intake.obstructions))
        + tiered_rating(intake.comfort_space_rating)
        + lighting_term(intake.has_lighting, intake.lighting_rating)
    )
    return min(SEGURIDAD_MAX, score)
