import pytest

from aceras.errors import ScoreRangeError
from aceras.models import (
    ComodidadIntake,
    InteresanteIntake,
    UtilidadIntake,
    WalkabilityBuckets,
)
from aceras.scoring.walkability import (
    WalkabilityScore,
    round_score,
    score_comodidad,
    score_interesante,
    score_utilidad,
    score_walkability,
    stored_scores,
)


def _base_buckets(**overrides) -> WalkabilityBuckets:
    payload = {
        "utilidad": {"amenities": {"parque": True, "supermercado": True, "clinica": False}},
        "seguridad": {
            "hasSidewalk": True,
            "widthRating": 3,
            "obstructions": ["huecos"],
            "comfortSpaceRating": 4,
            "hasLighting": True,
            "lightingRating": 2,
        },
        "comodidad": {"shadeRating": 4, "contaminants": ["ruido"], "severity": 2},
        "interesante": {"hasCommerce": True, "commerceCount": 1, "vibeRating": 3},
    }
    payload.update(overrides)
    return WalkabilityBuckets.model_validate(payload)


def test_utilidad_counts_true_toggles():
    intake = UtilidadIntake(amenities={"park": True, "market": True, "clinic": False})
    assert score_utilidad(intake) == pytest.approx(0.4)


def test_utilidad_caps_at_one():
    intake = UtilidadIntake.model_construct(amenities={f"amenity_{i}": True for i in range(10)})
    assert score_utilidad(intake) == 1.0


def test_utilidad_alias_toggles_merge():
    intake = UtilidadIntake(amenities={"parque": False, "park": True})
    assert intake.amenities == {"parque": True}


def test_comodidad_shade_and_contaminants():
    intake = ComodidadIntake(shade_rating=4, contaminants=["basura"], contamination_severity=5)
    assert score_comodidad(intake) == pytest.approx(1.5)


def test_comodidad_contamination_floors_at_zero():
    intake = ComodidadIntake(
        shade_rating=3, contaminants=["basura", "olores", "humo", "ruido"], contamination_severity=5
    )
    assert score_comodidad(intake) == 0.5


def test_comodidad_clean_and_shaded_is_capped_at_two():
    assert score_comodidad(ComodidadIntake(shade_rating=5)) == 2.0


def test_interesante_busy_commerce_and_vibe():
    intake = InteresanteIntake(has_commerce=True, commerce_count=5, vibe_rating=5)
    assert score_interesante(intake) == 2.0


def test_interesante_without_commerce():
    intake = InteresanteIntake(has_commerce=False, commerce_count=5, vibe_rating=2)
    assert score_interesante(intake) == pytest.approx(0.4)


def test_interesante_absent_vibe_counts_as_zero():
    assert score_interesante(InteresanteIntake(has_commerce=True)) == 1.0


def test_total_is_exact_sum_of_buckets():
    score = score_walkability(_base_buckets())
    assert score.total == (
        score.utilidad + score.seguridad + score.comodidad + score.interesante
    )
    assert score.utilidad == pytest.approx(0.4)
    assert score.seguridad == 3.75
    assert score.comodidad == pytest.approx(1.7)
    assert score.interesante == pytest.approx(1.6)


def test_every_bucket_stays_in_range():
    score = score_walkability(WalkabilityBuckets())
    assert 0 <= score.utilidad <= 1
    assert 0 <= score.seguridad <= 5
    assert 0 <= score.comodidad <= 2
    assert 0 <= score.interesante <= 2
    assert 0 <= score.total <= 10


def test_round_score_is_half_up():
    assert round_score(0.125) == 0.13
    assert round_score(2.675) == 2.68
    assert round_score(0.49999999999999994) == 0.5


def test_stored_total_matches_stored_buckets():
    stored = stored_scores(score_walkability(_base_buckets()))
    assert stored.scheme == "buckets_v1"
    assert stored.total == round_score(
        stored.utilidad + stored.seguridad + stored.comodidad + stored.interesante
    )
    assert stored.total == 7.45


def test_stored_scores_rejects_out_of_range_bucket():
    with pytest.raises(ScoreRangeError) as excinfo:
        stored_scores(WalkabilityScore(utilidad=1.5, seguridad=0, comodidad=0, interesante=0))
    assert excinfo.value.bucket == "utilidad"
