import asyncio
import random

import pytest

from charity_finder.core import geo
from charity_finder.core.catalog import CatalogUnavailableError, StaticCharityCatalog
from charity_finder.core.location import LocationProvider, StaticPlatform
from charity_finder.core.locator import CharityLocator, locate_charities
from charity_finder.models import Charity, Coordinate, FoodCategory, InvalidInputError

NEW_YORK = Coordinate(40.7128, -74.0060)


def _charity(charity_id, lat=None, lng=None, **kwargs):
    coordinate = Coordinate(lat, lng) if lat is not None else None
    return Charity(id=charity_id, name=f"Charity {charity_id}", address=f"{charity_id} Main St", coordinate=coordinate, **kwargs)


class FailingCatalog:
    def list_charities(self, origin, radius_miles):
        raise ConnectionError("catalog down")


class AsyncCatalog:
    def __init__(self, charities):
        self.charities = charities
        self.calls = []

    async def list_charities(self, origin, radius_miles):
        self.calls.append((origin, radius_miles))
        await asyncio.sleep(0)
        return self.charities


def _find(locator, *args, **kwargs):
    return asyncio.run(locator.find_nearby(*args, **kwargs))


def test_end_to_end_demo_catalog():
    locator = CharityLocator(StaticCharityCatalog())

    results = _find(locator, NEW_YORK, 10)

    assert [c.name for c in results] == ["City Food Bank", "Helping Hands Shelter", "Senior Center Kitchen"]
    assert results[0].distance == pytest.approx(0.0)
    assert results[1].distance == pytest.approx(3.2, abs=0.1)
    assert results[2].distance == pytest.approx(5.3, abs=0.1)


def test_radius_filter_is_correct_and_complete():
    rng = random.Random(7)
    charities = [
        _charity(str(i), 40.7128 + rng.uniform(-0.5, 0.5), -74.0060 + rng.uniform(-0.5, 0.5)) for i in range(60)
    ]
    locator = CharityLocator(StaticCharityCatalog(charities))

    for radius in (1, 5, 12.5, 40):
        results = _find(locator, NEW_YORK, radius)
        returned = {c.id for c in results}
        expected = {c.id for c in charities if geo.distance_miles(NEW_YORK, c.coordinate) <= radius}
        assert returned == expected
        assert all(c.distance <= radius for c in results)
        distances = [c.distance for c in results]
        assert distances == sorted(distances)


def test_radius_boundary_is_inclusive():
    target = Coordinate(40.7589, -73.9851)
    locator = CharityLocator(StaticCharityCatalog([_charity("edge", target.lat, target.lng)]))

    results = _find(locator, NEW_YORK, geo.distance_miles(NEW_YORK, target))

    assert [c.id for c in results] == ["edge"]


def test_charities_without_coordinates_are_never_returned():
    locator = CharityLocator(StaticCharityCatalog([_charity("nowhere"), _charity("here", 40.7128, -74.0060)]))

    for radius in (0.001, 25, 1e9):
        assert [c.id for c in _find(locator, NEW_YORK, radius)] == ["here"]


def test_equal_distances_keep_catalog_order():
    charities = [_charity(cid, 40.7589, -73.9851) for cid in ("b", "a", "c")]
    charities.insert(1, _charity("near", 40.7128, -74.0060))
    locator = CharityLocator(StaticCharityCatalog(charities))

    assert [c.id for c in _find(locator, NEW_YORK, 10)] == ["near", "b", "a", "c"]


def test_results_are_copies():
    source = _charity("1", 40.7128, -74.0060)
    locator = CharityLocator(StaticCharityCatalog([source]))

    results = _find(locator, NEW_YORK, 5)

    assert results[0].distance == pytest.approx(0.0)
    assert results[0] is not source
    assert source.distance is None


@pytest.mark.parametrize(
    "origin, radius",
    [
        (NEW_YORK, -5),
        (NEW_YORK, 0),
        (NEW_YORK, float("inf")),
        (Coordinate(200, 0), 25),
        (Coordinate(0, -190), 25),
        (Coordinate(None, 0), 25),
        (Coordinate("40.7", "-74.0"), 25),
        (Coordinate(True, 0), 25),
    ],
)
def test_invalid_input_is_rejected(origin, radius):
    locator = CharityLocator(StaticCharityCatalog())
    with pytest.raises(InvalidInputError):
        _find(locator, origin, radius)


def test_empty_catalog_returns_empty_result():
    locator = CharityLocator(StaticCharityCatalog([]))
    assert _find(locator, NEW_YORK, 25) == []


def test_catalog_failure_is_propagated(caplog):
    locator = CharityLocator(FailingCatalog())

    with caplog.at_level("ERROR"), pytest.raises(CatalogUnavailableError) as excinfo:
        _find(locator, NEW_YORK, 25)

    assert isinstance(excinfo.value.__cause__, ConnectionError)
    assert "Charity search failed" in " ".join(caplog.messages)


def test_async_catalog_receives_search_hints():
    catalog = AsyncCatalog([_charity("1", 40.7589, -73.9851)])
    locator = CharityLocator(catalog, default_radius_miles=7)

    results = _find(locator, NEW_YORK)

    assert [c.id for c in results] == ["1"]
    assert catalog.calls == [(NEW_YORK, 7)]


def test_category_and_pickup_filters():
    locator = CharityLocator(StaticCharityCatalog())

    dairy = _find(locator, NEW_YORK, 10, category=FoodCategory.DAIRY)
    pickup = _find(locator, NEW_YORK, 10, pickup_only=True)
    both = _find(locator, NEW_YORK, 10, category=FoodCategory.DAIRY, pickup_only=True)

    assert [c.name for c in dairy] == ["Helping Hands Shelter", "Senior Center Kitchen"]
    assert [c.name for c in pickup] == ["City Food Bank", "Senior Center Kitchen"]
    assert [c.name for c in both] == ["Senior Center Kitchen"]


class DenyingPlatform:
    def get_current_position(self, on_success, on_error, options):
        on_error("permission_denied", "User denied Geolocation")
        return None


def test_locate_charities_uses_fallback_when_location_unavailable():
    provider = LocationProvider(DenyingPlatform())
    locator = CharityLocator(StaticCharityCatalog())

    located = asyncio.run(locate_charities(provider, locator, NEW_YORK, 4))

    assert located.used_fallback is True
    assert located.origin == NEW_YORK
    assert located.unavailable.reason == "permission_denied"
    assert [c.name for c in located.charities] == ["City Food Bank", "Helping Hands Shelter"]


def test_locate_charities_uses_resolved_location():
    uptown = Coordinate(40.7831, -73.9712)
    provider = LocationProvider(StaticPlatform(uptown))
    locator = CharityLocator(StaticCharityCatalog())

    located = asyncio.run(locate_charities(provider, locator, NEW_YORK, 1))

    assert located.used_fallback is False
    assert located.origin == uptown
    assert [c.name for c in located.charities] == ["Senior Center Kitchen"]
