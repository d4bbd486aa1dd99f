"""
Great-circle distance helpers used to filter and sort providers by proximity.

Points are ``(latitude, longitude)`` pairs in degrees. Entities are anything
exposing ``latitude``/``longitude`` (and optionally ``service_radius``) either
as attributes (ORM rows) or as mapping keys (plain dicts).
"""
import math
from typing import Any, Iterable, List, NamedTuple, Optional, Sequence, Tuple

EARTH_RADIUS_METERS = 6371000
DEFAULT_RADIUS_METERS = 10000

Point = Tuple[float, float]


class Ranked(NamedTuple):
    entity: Any
    distance: float


def distance(a: Point, b: Point) -> float:
    """Haversine distance in meters between two points."""
    lat1, lon1 = a
    lat2, lon2 = b
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    # rounding can push h past 1 for near-antipodal points
    h = min(1.0, h)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_METERS * c


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{round(meters)} m"
    return f"{meters / 1000:.1f} km"


def is_within_service_area(center: Point, radius_meters: float, point: Point) -> bool:
    return distance(center, point) <= radius_meters


def _field(entity, name: str):
    if isinstance(entity, dict):
        return entity.get(name)
    return getattr(entity, name, None)


def coordinates_of(entity) -> Optional[Point]:
    # 0.0 is a valid coordinate, only None means "unknown"
    lat = _field(entity, "latitude")
    lng = _field(entity, "longitude")
    if lat is None or lng is None:
        return None
    return float(lat), float(lng)


def rank_by_distance(entities: Iterable, reference: Point) -> List[Ranked]:
    """
    Pair every entity with its distance from ``reference`` and sort ascending.
    Entities without coordinates get ``math.inf`` and sort last; ties keep
    input order.
    """
    ranked = []
    for entity in entities:
        coords = coordinates_of(entity)
        d = distance(reference, coords) if coords is not None else math.inf
        ranked.append(Ranked(entity, d))
    return sorted(ranked, key=lambda r: r.distance)


def filter_within_radius(
    entities: Iterable,
    reference: Point,
    radius_meters: Optional[float] = None,
    default_radius: float = DEFAULT_RADIUS_METERS,
) -> list:
    """
    Keep entities whose own location is within reach of ``reference``.

    The radius is ``radius_meters`` when given, else the entity's
    ``service_radius``, else ``default_radius``. Entities without
    coordinates are dropped.
    """
    kept = []
    for entity in entities:
        coords = coordinates_of(entity)
        if coords is None:
            continue
        radius = radius_meters or _field(entity, "service_radius") or default_radius
        if is_within_service_area(coords, float(radius), reference):
            kept.append(entity)
    return kept


def center_point(points: Sequence[Point]) -> Point:
    """Arithmetic mean of the given points; (0, 0) when there are none."""
    if not points:
        return 0.0, 0.0
    lat = sum(p[0] for p in points) / len(points)
    lng = sum(p[1] for p in points) / len(points)
    return lat, lng
