import math

import pytest

from domain import geo

NYC = (40.7128, -74.0060)
LA = (34.0522, -118.2437)
BROOKLYN = (40.6782, -73.9442)


def test_distance_to_self_is_zero():
    assert geo.distance(NYC, NYC) == 0


def test_distance_is_symmetric():
    assert geo.distance(NYC, LA) == pytest.approx(geo.distance(LA, NYC))


def test_distance_new_york_to_los_angeles():
    assert geo.distance(NYC, LA) == pytest.approx(3_936_000, rel=0.01)


def test_point_is_within_its_own_zero_radius_area():
    assert geo.is_within_service_area(NYC, 0, NYC)


def test_service_area_boundary():
    d = geo.distance(NYC, BROOKLYN)
    assert geo.is_within_service_area(NYC, d + 1, BROOKLYN)
    assert not geo.is_within_service_area(NYC, d - 1, BROOKLYN)


@pytest.mark.parametrize("meters,label", [
    (0, "0 m"),
    (450.4, "450 m"),
    (1000, "1.0 km"),
    (1540, "1.5 km"),
    (12345, "12.3 km"),
])
def test_format_distance(meters, label):
    assert geo.format_distance(meters) == label


def test_zero_coordinates_are_valid():
    assert geo.coordinates_of({"latitude": 0, "longitude": 0}) == (0.0, 0.0)
    assert geo.coordinates_of({"latitude": None, "longitude": 0}) is None


def test_rank_by_distance_sorts_and_puts_unknown_last():
    far = {"id": "la", "latitude": LA[0], "longitude": LA[1]}
    near = {"id": "bk", "latitude": BROOKLYN[0], "longitude": BROOKLYN[1]}
    unknown = {"id": "none", "latitude": None, "longitude": None}

    ranked = geo.rank_by_distance([unknown, far, near], NYC)

    assert [r.entity["id"] for r in ranked] == ["bk", "la", "none"]
    assert ranked[-1].distance == math.inf
    assert ranked[0].distance < ranked[1].distance


def test_filter_within_radius_uses_entity_radius_then_default():
    small = {"id": 1, "latitude": BROOKLYN[0], "longitude": BROOKLYN[1], "service_radius": 1000}
    wide = {"id": 2, "latitude": BROOKLYN[0], "longitude": BROOKLYN[1], "service_radius": 20000}
    fallback = {"id": 3, "latitude": BROOKLYN[0], "longitude": BROOKLYN[1]}
    nowhere = {"id": 4}

    kept = geo.filter_within_radius([small, wide, fallback, nowhere], NYC, default_radius=15000)

    assert [e["id"] for e in kept] == [2, 3]


def test_filter_within_radius_explicit_radius_wins():
    small = {"id": 1, "latitude": BROOKLYN[0], "longitude": BROOKLYN[1], "service_radius": 1000}
    assert geo.filter_within_radius([small], NYC, radius_meters=50000) == [small]


def test_center_point():
    assert geo.center_point([]) == (0.0, 0.0)
    assert geo.center_point([(10, 20), (20, 40)]) == (15, 30)


def test_triangle_inequality():
    assert geo.distance(NYC, LA) <= geo.distance(NYC, BROOKLYN) + geo.distance(BROOKLYN, LA) + 1e-6


def test_ranking_example():
    providers = [
        {"id": 1, "latitude": 0, "longitude": 0},
        {"id": 2, "latitude": 0, "longitude": 1},
        {"id": 3},
    ]
    assert [r.entity["id"] for r in geo.rank_by_distance(providers, (0, 0))] == [1, 2, 3]


def test_ranking_keeps_input_order_for_ties():
    twins = [{"id": "a", "latitude": 1, "longitude": 1}, {"id": "b", "latitude": 1, "longitude": 1}]
    assert [r.entity["id"] for r in geo.rank_by_distance(twins, (0, 0))] == ["a", "b"]


def test_near_antipodal_points_do_not_overflow():
    d = geo.distance((81.3, 177.1), (-81.3, 357.1))
    assert d == pytest.approx(math.pi * geo.EARTH_RADIUS_METERS, rel=1e-6)


def test_ranking_survives_antipodal_entities():
    ranked = geo.rank_by_distance([{"id": 1, "latitude": -81.3, "longitude": 357.1}], (81.3, 177.1))
    assert ranked[0].distance > 20_000_000
