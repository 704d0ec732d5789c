import random

from meetpoint.services.selection.geo import DEFAULT_CENTER, approx_meters, centroid, distance_sq, is_near
from meetpoint.services.selection.models import UNRESOLVED, Coordinate


def test_centroid_is_mean_of_points():
    c = centroid([Coordinate(51.0, -0.2), Coordinate(52.0, 0.0)])
    assert c.lat == 51.5
    assert c.lng == -0.1


def test_centroid_of_nothing_is_default_city():
    assert centroid([]) == DEFAULT_CENTER


def test_centroid_ignores_unresolved_sentinel():
    c = centroid([Coordinate(51.5, -0.1), UNRESOLVED])
    assert c == Coordinate(51.5, -0.1)
    assert centroid([UNRESOLVED, UNRESOLVED]) == DEFAULT_CENTER


def test_centroid_stays_inside_bounding_box():
    rng = random.Random(7)
    for _ in range(50):
        points = [
            Coordinate(rng.uniform(51.3, 51.7), rng.uniform(-0.5, 0.3))
            for _ in range(rng.randint(1, 8))
        ]
        c = centroid(points)
        assert min(p.lat for p in points) <= c.lat <= max(p.lat for p in points)
        assert min(p.lng for p in points) <= c.lng <= max(p.lng for p in points)


def test_distance_and_proximity():
    a = Coordinate(51.5074, -0.1223)
    b = Coordinate(51.5080, -0.1247)
    assert distance_sq(a, a) == 0
    assert distance_sq(a, b) == distance_sq(b, a)
    assert is_near(a, b, 0.003 ** 2)
    assert not is_near(a, Coordinate(51.5036, -0.1143), 0.003 ** 2)


def test_approx_meters():
    assert approx_meters(0.01 ** 2) == 1110
    assert approx_meters(0) == 0
