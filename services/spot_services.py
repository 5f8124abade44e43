import logging
from typing import Dict, List, Tuple

from models.parking_spots_model import NearestSpot
from services.errors import BadInput, DependencyMissing
from utils import spot_matcher, storage_utils

logger = logging.getLogger(__name__)


def parse_coordinates(raw) -> Tuple[float, float]:
    """
    Reads the caller's location as the identity context carries it: a
    "lat,lng" string, a {"lat", "lng"} dict or a two item sequence.
    """
    if raw is None or raw == "":
        raise BadInput("User coordinates are missing")

    if isinstance(raw, str):
        parts = [part.strip() for part in raw.split(",")]
    elif isinstance(raw, dict):
        parts = [raw.get("lat"), raw.get("lng")]
    else:
        parts = raw

    try:
        return spot_matcher.validate_coordinate(parts)
    except ValueError as e:
        raise BadInput(f"Invalid user coordinates: {e}") from e


def find_nearest_spots(session_user: Dict, k: int) -> List[NearestSpot]:
    origin = parse_coordinates(session_user.get("coordinates"))

    spots = storage_utils.load_parking_spot_data_from_db()
    spots_by_id = {spot["id"]: spot for spot in spots}
    catalog = [
        (spot["id"], (spot["coordinates"]["lat"], spot["coordinates"]["lng"]))
        for spot in spots
    ]

    try:
        nearest = spot_matcher.find_nearest(k, origin, catalog)
    except ValueError as e:
        logger.error(f"Spot catalog holds an invalid coordinate: {e}")
        raise DependencyMissing(f"Parking spot catalog holds an invalid coordinate: {e}") from e

    return [
        NearestSpot(id=spot_id, name=spots_by_id[spot_id]["name"], distance=distance)
        for spot_id, distance in nearest
    ]
