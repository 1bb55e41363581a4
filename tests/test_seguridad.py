import itertools

from aceras.intake.vocabulary import OBSTRUCTIONS
from aceras.models import SeguridadIntake
from aceras.scoring.seguridad import score_seguridad


def _base_seguridad(**overrides) -> SeguridadIntake:
    payload = {
        "hasSidewalk": True,
        "widthRating": 4,
        "obstructions": [],
        "comfortSpaceRating": 4,
        "hasLighting": True,
        "lightingRating": 5,
    }
    payload.update(overrides)
    return SeguridadIntake.model_validate(payload)


def test_perfect_intake_scores_five():
    assert score_seguridad(_base_seguridad()) == 5


def test_no_sidewalk_with_obstructions_and_lighting_off():
    intake = _base_seguridad(
        hasSidewalk=False,
        widthRating=None,
        obstructions=["huecos", "vendedores"],
        comfortSpaceRating=3,
        hasLighting=False,
        lightingRating=5,
    )
    assert score_seguridad(intake) == 1.0


def test_obstruction_term_floors_at_zero():
    intake = _base_seguridad(obstructions=list(OBSTRUCTIONS[:5]))
    assert score_seguridad(intake) == 4


def test_duplicate_obstructions_count_once():
    intake = _base_seguridad(obstructions=["huecos", "huecos", "holes"])
    assert intake.obstructions == frozenset({"huecos"})
    assert score_seguridad(intake) == 4.75


def test_empty_intake_scores_only_clear_path():
    assert score_seguridad(SeguridadIntake()) == 1.0


def test_width_and_comfort_tiers():
    assert score_seguridad(_base_seguridad(widthRating=3)) == 4.5
    assert score_seguridad(_base_seguridad(widthRating=2)) == 4.0
    assert score_seguridad(_base_seguridad(comfortSpaceRating=3)) == 4.5
    assert score_seguridad(_base_seguridad(comfortSpaceRating=1)) == 4.0


def test_lighting_tiers():
    assert score_seguridad(_base_seguridad(lightingRating=4)) == 5
    assert score_seguridad(_base_seguridad(lightingRating=3)) == 4.5
    assert score_seguridad(_base_seguridad(lightingRating=2)) == 4.5
    assert score_seguridad(_base_seguridad(lightingRating=1)) == 4.0
    assert score_seguridad(_base_seguridad(lightingRating=None)) == 4.0


def test_stale_lighting_rating_ignored_when_no_lighting():
    with_rating = _base_seguridad(hasLighting=False, lightingRating=5)
    without_rating = _base_seguridad(hasLighting=False, lightingRating=None)
    assert score_seguridad(with_rating) == score_seguridad(without_rating) == 4.0


def test_score_stays_in_range_for_every_valid_intake():
    ratings = [None, 1, 2, 3, 4, 5]
    for has_sidewalk, width, comfort, has_lighting, lighting, count in itertools.product(
        [None, True, False], ratings, ratings, [None, True, False], ratings, range(0, 9)
    ):
        intake = SeguridadIntake(
            has_sidewalk=has_sidewalk,
            width_rating=width,
            comfort_space_rating=comfort,
            has_lighting=has_lighting,
            lighting_rating=lighting,
            obstructions=OBSTRUCTIONS[:count],
        )
        assert 0 <= score_seguridad(intake) <= 5


def test_adding_obstruction_never_increases_score():
    for count in range(len(OBSTRUCTIONS)):
        fewer = _base_seguridad(obstructions=list(OBSTRUCTIONS[:count]))
        more = _base_seguridad(obstructions=list(OBSTRUCTIONS[: count + 1]))
        assert score_seguridad(more) <= score_seguridad(fewer)


def test_raising_rating_never_decreases_score():
    for field in ("widthRating", "comfortSpaceRating", "lightingRating"):
        for rating in range(1, 5):
            lower = _base_seguridad(**{field: rating})
            higher = _base_seguridad(**{field: rating + 1})
            assert score_seguridad(higher) >= score_seguridad(lower)


def test_gaining_sidewalk_never_decreases_score():
    for width, comfort, lighting in itertools.product([None, 1, 3, 5], repeat=3):
        fields = {"widthRating": width, "comfortSpaceRating": comfort, "lightingRating": lighting}
        without = _base_seguridad(hasSidewalk=False, **fields)
        with_sidewalk = _base_seguridad(hasSidewalk=True, **fields)
        assert score_seguridad(with_sidewalk) >= score_seguridad(without)


def test_lighting_rating_ignored_when_lighting_unknown():
    baseline = score_seguridad(_base_seguridad(hasLighting=None, lightingRating=None))
    for rating in range(1, 6):
        intake = _base_seguridad(hasLighting=None, lightingRating=rating)
        assert score_seguridad(intake) == baseline == 4.0
