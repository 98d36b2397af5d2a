import pytest

from server.terrain import (
    BOAT_TERRAIN, DEFAULT_KIND, RULES, TerrainField, TerrainKind, TerrainSample,
    classify, field_for, is_water,
)


def _sample(continent=0.5, elevation=0.5, moisture=0.4, detail=0.3, river=1.0):
    return TerrainSample(continent, elevation, moisture, detail, river)


def _first_match(s):
    for _name, rule in RULES:
        kind = rule(s)
        if kind is not None:
            return kind
    return DEFAULT_KIND


def test_classify_is_deterministic_and_total():
    field = TerrainField(seed=9)
    for x in range(-30, 30, 3):
        for y in range(-30, 30, 3):
            k = field.classify(x, y)
            assert isinstance(k, TerrainKind)
            assert field.classify(x, y) == k


@pytest.mark.parametrize("x,y", [
    (2 ** 31, -2 ** 31),
    (10 ** 12, 10 ** 12),
    (-10 ** 18, 7),
    (10 ** 400, -10 ** 400),
])
def test_classify_extreme_coordinates(x, y):
    assert isinstance(classify(x, y), TerrainKind)


def test_requires_boat_matches_kind():
    field = field_for(0)
    for x in range(-200, 200, 40):
        for y in range(-200, 200, 40):
            assert field.requires_boat(x, y) == (field.classify(x, y) in BOAT_TERRAIN)
            assert is_water(x, y) == field.requires_boat(x, y)


def test_ocean_depths():
    assert _first_match(_sample(continent=0.05)) == TerrainKind.deep_water
    assert _first_match(_sample(continent=0.15)) == TerrainKind.water


def test_water_beats_beach_and_cliff():
    # height > 0.78 would be a cliff, continent in the beach band would be sand
    s = _sample(continent=0.19, elevation=0.99)
    assert _first_match(s) == TerrainKind.water


def test_beach_beats_cliff():
    s = _sample(continent=0.25, elevation=0.99)
    assert _first_match(s) == TerrainKind.sand


def test_river_band():
    s = _sample(continent=0.5, elevation=0.5, river=0.01)
    assert _first_match(s) == TerrainKind.deep_water
    s = _sample(continent=0.5, elevation=0.5, river=0.03)
    assert _first_match(s) == TerrainKind.water


def test_woodland():
    assert _first_match(_sample(moisture=0.8, detail=0.5)) == TerrainKind.forest
    assert _first_match(_sample(moisture=0.65, detail=0.1)) == TerrainKind.trees


def test_default_is_grass():
    assert _first_match(_sample()) == TerrainKind.grass


def test_rule_order_is_priority():
    field = TerrainField(rules=(
        ("sand", lambda s: TerrainKind.sand),
        ("water", lambda s: TerrainKind.water),
    ))
    assert field.classify(1, 1) == TerrainKind.sand
    assert not field.requires_boat(1, 1)
    assert TerrainField(rules=()).classify(5, 5) == TerrainKind.grass


def test_classify_area_row_major():
    field = field_for(0)
    rows = field.classify_area(-2, 10, 1, 12)
    assert len(rows) == 3
    assert all(len(r) == 4 for r in rows)
    assert rows[1][3] == field.classify(1, 11).value


def test_field_for_is_cached_per_seed():
    assert field_for(5) is field_for(5)
    assert field_for(5) is not field_for(6)
