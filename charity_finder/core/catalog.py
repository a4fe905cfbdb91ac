"""Charity catalogs consulted by the locator before distance ranking."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Iterable, List, Optional, Protocol, Sequence, Union

import requests

from charity_finder.core.geo import miles_to_meters
from charity_finder.etl.transform import is_operational, to_charity
from charity_finder.models import Charity, Coordinate, FoodCategory, OperatingHours
from charity_finder.vendors import google_places

logger = logging.getLogger(__name__)


class CatalogUnavailableError(RuntimeError):
    """Raised when the charity source cannot be read."""


class CharityCatalog(Protocol):
    def list_charities(
        self, origin: Coordinate, radius_miles: float
    ) -> Union[Iterable[Charity], Awaitable[Iterable[Charity]]]: ...


_WEEKDAYS_9_TO_5 = "9:00 AM - 5:00 PM"


def demo_charities() -> List[Charity]:
    """The three New York demo charities the application ships with."""
    return [
        Charity(
            id="1",
            name="City Food Bank",
            address="123 Community St, Downtown",
            description="Serving families in need for over 20 years",
            coordinate=Coordinate(40.7128, -74.0060),
            accepted_items=frozenset(
                {FoodCategory.VEGETABLES, FoodCategory.FRUITS, FoodCategory.GRAINS, FoodCategory.PANTRY}
            ),
            pickup_available=True,
            operating_hours=OperatingHours(
                monday=_WEEKDAYS_9_TO_5,
                tuesday=_WEEKDAYS_9_TO_5,
                wednesday=_WEEKDAYS_9_TO_5,
                thursday=_WEEKDAYS_9_TO_5,
                friday=_WEEKDAYS_9_TO_5,
                saturday="10:00 AM - 2:00 PM",
                sunday="Closed",
            ),
            phone="(555) 123-4567",
            email="info@cityfoodbank.org",
            website="https://cityfoodbank.org",
        ),
        Charity(
            id="2",
            name="Helping Hands Shelter",
            address="456 Hope Ave, Midtown",
            description="Providing meals and shelter to the homeless community",
            coordinate=Coordinate(40.7589, -73.9851),
            accepted_items=frozenset(
                {FoodCategory.MEAT, FoodCategory.VEGETABLES, FoodCategory.FRUITS, FoodCategory.DAIRY}
            ),
            pickup_available=False,
            operating_hours=OperatingHours(
                monday="8:00 AM - 6:00 PM",
                tuesday="8:00 AM - 6:00 PM",
                wednesday="8:00 AM - 6:00 PM",
                thursday="8:00 AM - 6:00 PM",
                friday="8:00 AM - 6:00 PM",
                saturday="9:00 AM - 4:00 PM",
                sunday="9:00 AM - 4:00 PM",
            ),
            phone="(555) 987-6543",
            email="contact@helpinghands.org",
            website="https://helpinghands.org",
        ),
        Charity(
            id="3",
            name="Senior Center Kitchen",
            address="789 Elder Way, Uptown",
            description="Daily meals for senior citizens in our community",
            coordinate=Coordinate(40.7831, -73.9712),
            accepted_items=frozenset(
                {
                    FoodCategory.VEGETABLES,
                    FoodCategory.FRUITS,
                    FoodCategory.MEAT,
                    FoodCategory.DAIRY,
                    FoodCategory.GRAINS,
                }
            ),
            pickup_available=True,
            operating_hours=OperatingHours(
                monday="7:00 AM - 3:00 PM",
                tuesday="7:00 AM - 3:00 PM",
                wednesday="7:00 AM - 3:00 PM",
                thursday="7:00 AM - 3:00 PM",
                friday="7:00 AM - 3:00 PM",
                saturday="Closed",
                sunday="Closed",
            ),
            phone="(555) 456-7890",
            email="kitchen@seniorcenter.org",
            website="https://seniorcenter.org",
        ),
    ]


class StaticCharityCatalog:
    """In-memory catalog; ignores the search hints and returns every record."""

    def __init__(self, charities: Optional[Sequence[Charity]] = None) -> None:
        self._charities = list(demo_charities() if charities is None else charities)

    def list_charities(self, origin: Coordinate, radius_miles: float) -> List[Charity]:
        return list(self._charities)


class GooglePlacesCharityCatalog:
    """Catalog backed by a Google Places Nearby Search around the origin."""

    def __init__(self, api_key: str, max_pages: int = 1, page_delay_seconds: float = 2.0) -> None:
        self._api_key = api_key
        self._max_pages = max_pages
        self._page_delay_seconds = page_delay_seconds

    async def list_charities(self, origin: Coordinate, radius_miles: float) -> List[Charity]:
        return await asyncio.to_thread(self.fetch, origin, radius_miles)

    def fetch(self, origin: Coordinate, radius_miles: float) -> List[Charity]:
        if not self._api_key:
            raise CatalogUnavailableError("GOOGLE_API_KEY is required for the Google Places catalog")

        radius_meters = miles_to_meters(radius_miles)
        charities: List[Charity] = []
        page_token = None
        processed_pages = 0

        while processed_pages < self._max_pages:
            try:
                response = google_places.nearby_search(
                    origin, radius_meters, api_key=self._api_key, pagetoken=page_token
                )
            except (google_places.GooglePlacesError, requests.RequestException) as exc:
                raise CatalogUnavailableError(f"Google Places nearby search failed: {exc}") from exc

            results = response.get("results", [])
            logger.info("Fetched %d places on page %d", len(results), processed_pages + 1)
            for result in results:
                if not is_operational(result):
                    logger.debug("Skipping closed place %s", result.get("place_id"))
                    continue
                charity = to_charity(result)
                if charity is None:
                    logger.debug("Skipping unusable place result: %s", result)
                    continue
                charities.append(charity)

            processed_pages += 1
            page_token = response.get("next_page_token")
            if not page_token:
                break
            time.sleep(self._page_delay_seconds)

        return charities
