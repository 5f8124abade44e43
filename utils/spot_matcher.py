from typing import Iterable, List, Sequence, Tuple

from geopy.distance import great_circle

LatLng = Tuple[float, float]


def validate_coordinate(coordinate: Sequence) -> LatLng:
    """Returns coordinate as a (lat, lng) float pair or raises ValueError."""
    if isinstance(coordinate, str):
        raise ValueError(f"Coordinate must be a (lat, lng) pair, not a string: {coordinate!r}")
    try:
        lat, lng = coordinate
        lat, lng = float(lat), float(lng)
    except (TypeError, ValueError):
        raise ValueError(f"Coordinate must be a (lat, lng) pair of numbers, got {coordinate!r}")

    if not -90 <= lat <= 90:
        raise ValueError(f"Latitude {lat} is outside [-90, 90]")
    if not -180 <= lng <= 180:
        raise ValueError(f"Longitude {lng} is outside [-180, 180]")
    return lat, lng


def distance_m(origin: LatLng, destination: LatLng) -> float:
    # Coordinates are angles, so planar distance on them would be meaningless
    return great_circle(origin, destination).meters


def find_nearest(k: int, origin: Sequence, catalog: Iterable[Tuple[str, Sequence]]) -> List[Tuple[str, float]]:
    """
    k catalog entries closest to origin, nearest first.

    catalog holds (identifier, (lat, lng)) pairs. Returns (identifier, metres)
    pairs; entries at equal distance keep their catalog order. k larger than
    the catalog returns all of it and k <= 0 returns nothing.
    """
    origin = validate_coordinate(origin)
    if k <= 0:
        return []

    distances = [
        (identifier, distance_m(origin, validate_coordinate(coordinate)))
        for identifier, coordinate in catalog
    ]
    distances.sort(key=lambda entry: entry[1])
    return distances[:k]
