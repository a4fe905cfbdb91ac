"""CLI job to list charities near the user (or a given point)."""

import argparse
import asyncio
import json
import logging
from typing import List, Optional

from charity_finder.core.catalog import (
    CatalogUnavailableError,
    GooglePlacesCharityCatalog,
    StaticCharityCatalog,
)
from charity_finder.core.config import ConfigError, Settings, get_settings
from charity_finder.core.geo import directions_url
from charity_finder.core.location import LocationOptions, LocationProvider
from charity_finder.core.locator import CharityLocator, LocatedCharities, locate_charities
from charity_finder.models import Charity, Coordinate, FoodCategory, InvalidInputError
from charity_finder.vendors.ip_geolocation import IpGeolocationPlatform

logger = logging.getLogger(__name__)


def build_location_provider(settings: Settings) -> LocationProvider:
    platform = IpGeolocationPlatform(settings.ip_geolocation_url)
    return LocationProvider(platform, LocationOptions.from_settings(settings))


def build_locator(settings: Settings) -> CharityLocator:
    if settings.catalog == "google_places":
        catalog = GooglePlacesCharityCatalog(settings.google_api_key)
    else:
        catalog = StaticCharityCatalog()
    return CharityLocator(catalog, default_radius_miles=settings.default_radius_miles)


def fallback_origin(settings: Settings) -> Coordinate:
    return Coordinate(lat=settings.fallback_lat, lng=settings.fallback_lng)


async def run_find_nearby(
    *,
    lat: Optional[float],
    lng: Optional[float],
    radius_miles: Optional[float],
    category: Optional[FoodCategory],
    pickup_only: bool,
) -> LocatedCharities:
    settings = get_settings()
    locator = build_locator(settings)

    if (lat is None) != (lng is None):
        raise InvalidInputError("--lat and --lng must be given together")

    if lat is not None:
        origin = Coordinate(lat=lat, lng=lng)
        charities = await locator.find_nearby(origin, radius_miles, category=category, pickup_only=pickup_only)
        return LocatedCharities(origin=origin, used_fallback=False, charities=charities)

    return await locate_charities(
        build_location_provider(settings),
        locator,
        fallback_origin(settings),
        radius_miles,
        category=category,
        pickup_only=pickup_only,
    )


def format_results(charities: List[Charity]) -> str:
    if not charities:
        return "No charities found within the search radius."
    lines = []
    for index, charity in enumerate(charities, start=1):
        pickup = "pickup available" if charity.pickup_available else "drop-off only"
        lines.append(f"{index}. {charity.name} - {charity.distance:.1f} mi ({pickup})")
        lines.append(f"   {charity.address}")
        lines.append(f"   {directions_url(charity.address)}")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find food charities near you")
    parser.add_argument("--lat", dest="lat", type=float, help="Origin latitude (auto-located when omitted)")
    parser.add_argument("--lng", dest="lng", type=float, help="Origin longitude (auto-located when omitted)")
    parser.add_argument(
        "--radius",
        dest="radius_miles",
        type=float,
        default=get_settings().default_radius_miles,
        help="Search radius in miles",
    )
    parser.add_argument(
        "--category",
        dest="category",
        type=FoodCategory,
        choices=list(FoodCategory),
        metavar="CATEGORY",
        help="Only charities accepting this food category",
    )
    parser.add_argument("--pickup-only", dest="pickup_only", action="store_true", help="Only charities offering pickup")
    parser.add_argument("--json", dest="as_json", action="store_true", help="Emit JSON instead of text")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    try:
        parser = build_parser()
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc
    args = parser.parse_args(argv)

    try:
        located = asyncio.run(
            run_find_nearby(
                lat=args.lat,
                lng=args.lng,
                radius_miles=args.radius_miles,
                category=args.category,
                pickup_only=args.pickup_only,
            )
        )
    except (ConfigError, InvalidInputError) as exc:
        logger.error("Invalid input: %s", exc)
        raise SystemExit(2) from exc
    except CatalogUnavailableError as exc:
        logger.error("Charity search failed: %s", exc)
        raise SystemExit(1) from exc

    if args.as_json:
        payload = {
            "origin": {"lat": located.origin.lat, "lng": located.origin.lng},
            "used_fallback": located.used_fallback,
            "charities": [charity.to_dict() for charity in located.charities],
        }
        print(json.dumps(payload, indent=2))
        return

    if located.used_fallback:
        print(f"Location unavailable; searching around {located.origin.lat:.4f}, {located.origin.lng:.4f}")
    print(format_results(located.charities))


if __name__ == "__main__":
    main()
