"""Client utilities for the Google Places API."""

import logging
from typing import Any, Dict, Optional

import requests

from charity_finder.models import Coordinate

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://maps.googleapis.com/maps/api/place"

MAX_RADIUS_METERS = 50000
CHARITY_KEYWORD = "food bank charity"


class GooglePlacesError(RuntimeError):
    """Raised when the Places API returns a non-successful response."""


def nearby_search(
    location: Coordinate,
    radius_meters: int,
    api_key: str,
    keyword: str = CHARITY_KEYWORD,
    pagetoken: Optional[str] = None,
) -> Dict[str, Any]:
    params = {
        "location": f"{location.lat},{location.lng}",
        "radius": min(radius_meters, MAX_RADIUS_METERS),
        "keyword": keyword,
        "key": api_key,
    }
    if pagetoken:
        params = {"pagetoken": pagetoken, "key": api_key}
    response = _SESSION.get(f"{_BASE_URL}/nearbysearch/json", params=params, timeout=10)
    response.raise_for_status()
    payload = response.json()
    status = payload.get("status")
    if status not in {"OK", "ZERO_RESULTS"}:
        logger.error("nearby_search failed: status=%s, error_message=%s", status, payload.get("error_message"))
        raise GooglePlacesError(payload.get("error_message") or status)
    return payload
