"""Great-circle distance and Google Maps link helpers."""

import math
from urllib.parse import quote

from charity_finder.models import Coordinate

EARTH_RADIUS_MILES = 3959.0
METERS_PER_MILE = 1609

_MAPS_BASE_URL = "https://www.google.com/maps"


def distance_miles(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance between two coordinates on a sphere of radius 3959 miles."""
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_MILES * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def miles_to_meters(miles: float) -> int:
    return int(round(miles * METERS_PER_MILE))


def directions_url(destination: str) -> str:
    return f"{_MAPS_BASE_URL}/dir/?api=1&destination={quote(destination, safe='')}"


def map_embed_url(location: Coordinate, api_key: str, zoom: int = 15) -> str:
    return f"{_MAPS_BASE_URL}/embed/v1/view?key={api_key}&center={location.lat},{location.lng}&zoom={zoom}"
