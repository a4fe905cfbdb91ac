"""Core data models shared by the charity locator."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

DAYS_OF_WEEK = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class InvalidInputError(ValueError):
    """Raised when a coordinate or search radius is out of range."""


class FoodCategory(str, Enum):
    VEGETABLES = "vegetables"
    FRUITS = "fruits"
    DAIRY = "dairy"
    MEAT = "meat"
    SEAFOOD = "seafood"
    GRAINS = "grains"
    PANTRY = "pantry"
    FROZEN = "frozen"
    BEVERAGES = "beverages"
    SNACKS = "snacks"


@dataclass(frozen=True)
class Coordinate:
    """Latitude/longitude pair in decimal degrees (WGS-84)."""

    lat: float
    lng: float

    def is_valid(self) -> bool:
        for value in (self.lat, self.lng):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return False
        return (
            math.isfinite(self.lat)
            and math.isfinite(self.lng)
            and -90 <= self.lat <= 90
            and -180 <= self.lng <= 180
        )

    def validate(self) -> "Coordinate":
        if not self.is_valid():
            raise InvalidInputError(f"Coordinate out of range: lat={self.lat}, lng={self.lng}")
        return self


@dataclass(frozen=True)
class OperatingHours:
    monday: Optional[str] = None
    tuesday: Optional[str] = None
    wednesday: Optional[str] = None
    thursday: Optional[str] = None
    friday: Optional[str] = None
    saturday: Optional[str] = None
    sunday: Optional[str] = None

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {day: getattr(self, day) for day in DAYS_OF_WEEK}


@dataclass(slots=True)
class Charity:
    """A donation recipient as supplied by a charity catalog.

    ``distance`` is transient: catalogs leave it unset and only the ranking
    step fills it in (miles from the search origin).
    """

    id: str
    name: str
    address: str
    description: str = ""
    coordinate: Optional[Coordinate] = None
    accepted_items: FrozenSet[FoodCategory] = frozenset()
    pickup_available: bool = False
    operating_hours: Optional[OperatingHours] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    distance: Optional[float] = field(default=None, compare=False)

    def accepts(self, category: FoodCategory) -> bool:
        return category in self.accepted_items

    def to_dict(self) -> Dict[str, Any]:
        coordinate = None
        if self.coordinate is not None:
            coordinate = {"lat": self.coordinate.lat, "lng": self.coordinate.lng}
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "description": self.description,
            "coordinates": coordinate,
            "accepted_items": sorted(category.value for category in self.accepted_items),
            "pickup_available": self.pickup_available,
            "operating_hours": self.operating_hours.as_dict() if self.operating_hours else None,
            "phone": self.phone,
            "email": self.email,
            "website": self.website,
            "distance": self.distance,
        }


@dataclass(frozen=True)
class SearchRequest:
    """Ephemeral query: where to search from and how far out."""

    origin: Coordinate
    radius_miles: float = 25.0
    category: Optional[FoodCategory] = None
    pickup_only: bool = False

    def validate(self) -> "SearchRequest":
        self.origin.validate()
        radius = self.radius_miles
        if isinstance(radius, bool) or not isinstance(radius, (int, float)):
            raise InvalidInputError(f"Radius must be a number, got {radius!r}")
        if not math.isfinite(radius) or radius <= 0:
            raise InvalidInputError(f"Radius must be a finite positive number of miles, got {radius}")
        return self
