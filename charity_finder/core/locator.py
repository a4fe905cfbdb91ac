"""Nearby-charity discovery: fetch candidates, measure distance, filter and sort."""

from __future__ import annotations

import inspect
import logging
import math
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional

from charity_finder.core.catalog import CatalogUnavailableError, CharityCatalog
from charity_finder.core.geo import distance_miles
from charity_finder.core.location import LocationProvider, Unavailable
from charity_finder.models import Charity, Coordinate, FoodCategory, SearchRequest

logger = logging.getLogger(__name__)

DEFAULT_RADIUS_MILES = 25.0


def rank_charities(charities: Iterable[Charity], request: SearchRequest) -> List[Charity]:
    """Annotate, filter and sort candidates for an already validated request.

    Returns copies with ``distance`` set. Candidates without a coordinate are
    treated as infinitely far away and never included. ``sorted`` is stable,
    so equal distances keep catalog order.
    """
    ranked: List[Charity] = []
    for charity in charities:
        if charity.coordinate is None:
            distance = math.inf
        else:
            distance = distance_miles(request.origin, charity.coordinate)
        if distance > request.radius_miles:
            continue
        if request.category is not None and not charity.accepts(request.category):
            continue
        if request.pickup_only and not charity.pickup_available:
            continue
        ranked.append(replace(charity, distance=distance))
    return sorted(ranked, key=lambda charity: charity.distance)


class CharityLocator:
    def __init__(self, catalog: CharityCatalog, default_radius_miles: float = DEFAULT_RADIUS_MILES) -> None:
        self._catalog = catalog
        self.default_radius_miles = default_radius_miles

    async def _load_candidates(self, origin: Coordinate, radius_miles: float) -> List[Charity]:
        try:
            candidates = self._catalog.list_charities(origin, radius_miles)
            if inspect.isawaitable(candidates):
                candidates = await candidates
            return list(candidates or [])
        except CatalogUnavailableError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise CatalogUnavailableError(f"Charity catalog could not be read: {exc}") from exc

    async def find_nearby(
        self,
        origin: Coordinate,
        radius_miles: Optional[float] = None,
        *,
        category: Optional[FoodCategory] = None,
        pickup_only: bool = False,
    ) -> List[Charity]:
        """Return charities within ``radius_miles`` of ``origin``, nearest first.

        Raises:
            InvalidInputError: origin out of range or radius not a finite positive number.
            CatalogUnavailableError: the catalog could not be read.
        """
        if radius_miles is None:
            radius_miles = self.default_radius_miles
        request = SearchRequest(
            origin=origin, radius_miles=radius_miles, category=category, pickup_only=pickup_only
        ).validate()

        try:
            candidates = await self._load_candidates(request.origin, request.radius_miles)
        except CatalogUnavailableError as exc:
            logger.error("Charity search failed: %s", exc)
            raise

        results = rank_charities(candidates, request)
        logger.info(
            "Found %d of %d charities within %.1f miles of (%.4f, %.4f)",
            len(results),
            len(candidates),
            request.radius_miles,
            origin.lat,
            origin.lng,
        )
        return results


@dataclass(frozen=True)
class LocatedCharities:
    origin: Coordinate
    used_fallback: bool
    charities: List[Charity]
    unavailable: Optional[Unavailable] = None


async def locate_charities(
    provider: LocationProvider,
    locator: CharityLocator,
    fallback: Coordinate,
    radius_miles: Optional[float] = None,
    *,
    category: Optional[FoodCategory] = None,
    pickup_only: bool = False,
) -> LocatedCharities:
    """Search around the user's position, or around ``fallback`` when it cannot be resolved."""
    location = await provider.resolve_current_location()
    unavailable = None
    if isinstance(location, Unavailable):
        logger.info("Using fallback origin (%.4f, %.4f): %s", fallback.lat, fallback.lng, location.reason)
        unavailable = location
        origin = fallback
    else:
        origin = location

    charities = await locator.find_nearby(origin, radius_miles, category=category, pickup_only=pickup_only)
    return LocatedCharities(
        origin=origin,
        used_fallback=unavailable is not None,
        charities=charities,
        unavailable=unavailable,
    )
