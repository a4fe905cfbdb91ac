"""Utilities for transforming Google Places responses into Charity records."""

import logging
from typing import Any, Dict, Optional

from charity_finder.models import Charity, Coordinate

logger = logging.getLogger(__name__)

_CLOSED_STATUSES = {"CLOSED_PERMANENTLY", "CLOSED_TEMPORARILY"}


def parse_coordinate(geometry: Dict[str, Any]) -> Optional[Coordinate]:
    location = (geometry or {}).get("location") or {}
    try:
        coordinate = Coordinate(lat=float(location["lat"]), lng=float(location["lng"]))
    except (KeyError, TypeError, ValueError):
        return None
    if not coordinate.is_valid():
        logger.debug("Discarding out-of-range place geometry: %s", location)
        return None
    return coordinate


def is_operational(result: Dict[str, Any]) -> bool:
    return result.get("business_status") not in _CLOSED_STATUSES


def to_charity(result: Dict[str, Any]) -> Optional[Charity]:
    """Build a Charity from a Places search result, or None when it is unusable.

    Places does not say which food categories a charity accepts, so
    ``accepted_items`` stays empty for these records. Phone and website only
    come back from Place Details, which the catalog does not call.
    """
    place_id = result.get("place_id")
    name = (result.get("name") or "").strip()
    if not place_id or not name:
        return None

    address = result.get("vicinity") or result.get("formatted_address") or ""
    return Charity(
        id=place_id,
        name=name,
        address=address,
        description=(result.get("editorial_summary") or {}).get("overview", ""),
        coordinate=parse_coordinate(result.get("geometry", {})),
    )
