"""Flat-earth geometry helpers, good enough inside one metropolitan area."""

from meetpoint.services.selection.models import Coordinate

DEFAULT_CENTER = Coordinate(51.5074, -0.1278)  # Central London

METERS_PER_DEGREE = 111_000


def centroid(points: list[Coordinate]) -> Coordinate:
    """Arithmetic mean of the resolved points, or the default city center."""
    resolved = [p for p in points if p.is_resolved]
    if not resolved:
        return DEFAULT_CENTER

    return Coordinate(
        lat=sum(p.lat for p in resolved) / len(resolved),
        lng=sum(p.lng for p in resolved) / len(resolved),
    )


def distance_sq(a: Coordinate, b: Coordinate) -> float:
    """Squared Euclidean distance in degree space."""
    d_lat = a.lat - b.lat
    d_lng = a.lng - b.lng
    return d_lat * d_lat + d_lng * d_lng


def is_near(a: Coordinate, b: Coordinate, threshold_deg_sq: float) -> bool:
    return distance_sq(a, b) < threshold_deg_sq


def approx_meters(dist_sq: float) -> int:
    """Very rough metres from a squared degree distance (~111km per degree)."""
    return round(dist_sq ** 0.5 * METERS_PER_DEGREE)
