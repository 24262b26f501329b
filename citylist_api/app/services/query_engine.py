"""
Read operations over the city store.

``QueryEngine`` validates and normalises request inputs (limits,
offsets, search terms, country codes and coordinates) and turns them
into city store calls.  Every method is a pure read over the immutable
corpus and returns a freshly built result, so one engine instance is
shared by all request handlers without locking.

Limits differ per operation and are kept that way on purpose: listing
and country filtering cap at 1000 rows, name search at 100.
"""

from __future__ import annotations

import logging
import math
from typing import Any, List, Optional, Tuple

from citylist_api.app.core.exceptions import (
    EmptyCorpus,
    InvalidCoordinates,
    InvalidCountryCode,
    InvalidQuery,
)
from citylist_api.app.core.geo import haversine_km
from citylist_api.app.schemas.city import City, CityPage, NearestCity
from citylist_api.app.services.city_store import CityStore


logger = logging.getLogger(__name__)

LIST_DEFAULT_LIMIT = 100
LIST_MAX_LIMIT = 1000
SEARCH_DEFAULT_LIMIT = 50
SEARCH_MAX_LIMIT = 100
SEARCH_MIN_LENGTH = 2
COUNTRY_DEFAULT_LIMIT = 100
COUNTRY_MAX_LIMIT = 1000
DISTANCE_DECIMALS = 2


def clamp_limit(limit: Optional[int], default: int, maximum: int) -> int:
    """Replace missing or non-positive limits by ``default``, cap at ``maximum``."""
    if limit is None or limit <= 0:
        return default
    return min(limit, maximum)


def parse_coordinate(value: Any, name: str, bound: float) -> float:
    """Parse a raw coordinate and check it lies in ``[-bound, bound]``.

    Accepts numbers and numeric strings.  Booleans, missing values,
    non-numeric strings, NaN and infinities are rejected.

    Raises
    ------
    InvalidCoordinates
        With a message naming ``name`` and the violated bound.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidCoordinates(f"{name} is required")
    if isinstance(value, bool):
        raise InvalidCoordinates(f"{name} must be a valid number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidCoordinates(f"{name} must be a valid number")
    if not math.isfinite(number):
        raise InvalidCoordinates(f"{name} must be a finite number")
    if number < -bound or number > bound:
        raise InvalidCoordinates(f"{name} must be between {-bound:g} and {bound:g}")
    return number


def parse_point(longitude: Any, latitude: Any) -> Tuple[float, float]:
    """Validate raw longitude/latitude inputs and return ``(lat, lon)``."""
    lon = parse_coordinate(longitude, "longitude", 180)
    lat = parse_coordinate(latitude, "latitude", 90)
    return lat, lon


class QueryEngine:
    """Listing, search, filtering and nearest-point lookup."""

    def __init__(self, store: CityStore):
        self.store = store

    def list_cities(self, limit: Optional[int] = None, offset: Optional[int] = None) -> CityPage:
        """Return one page of the corpus plus the corpus size.

        An offset past the end yields an empty page, not an error.
        """
        limit = clamp_limit(limit, LIST_DEFAULT_LIMIT, LIST_MAX_LIMIT)
        total = self.store.count()
        offset = max(offset or 0, 0)
        # Past the end: empty page without a query.
        cities = self.store.page(offset, limit) if offset < total else []
        return CityPage(cities=cities, total=total, limit=limit, offset=offset)

    def search(self, q: Optional[str], limit: Optional[int] = None) -> List[City]:
        """Case-insensitive substring search on city names, in store order."""
        if not q or len(q) < SEARCH_MIN_LENGTH:
            raise InvalidQuery(f"Search query must be at least {SEARCH_MIN_LENGTH} characters")
        limit = clamp_limit(limit, SEARCH_DEFAULT_LIMIT, SEARCH_MAX_LIMIT)
        return self.store.filter_by_name(q, limit)

    @staticmethod
    def normalize_country(code: Optional[str]) -> str:
        """Uppercase a country code and require exactly two ASCII letters."""
        normalized = (code or "").strip().upper()
        if len(normalized) != 2 or not (normalized.isascii() and normalized.isalpha()):
            raise InvalidCountryCode("Country code must be 2 letters")
        return normalized

    def by_country(self, code: Optional[str], limit: Optional[int] = None) -> Tuple[str, List[City]]:
        """Return the normalised code and its cities in store order."""
        normalized = self.normalize_country(code)
        limit = clamp_limit(limit, COUNTRY_DEFAULT_LIMIT, COUNTRY_MAX_LIMIT)
        return normalized, self.store.filter_by_country(normalized, limit)

    def get_city(self, city_id: int) -> City:
        return self.store.find_by_id(city_id)

    def nearest(self, lat: float, lon: float) -> NearestCity:
        """Return the closest city to ``(lat, lon)`` by haversine distance.

        The minimum is tracked on unrounded distances with a strict
        comparison, so on an exact tie the first city in store order
        wins.  Only the returned distance is rounded.

        Raises
        ------
        EmptyCorpus
            If the store holds no cities.
        """
        closest: Optional[City] = None
        min_distance = math.inf
        for city in self.store.all():
            distance = haversine_km(lat, lon, city.lat, city.lon)
            if distance < min_distance:
                min_distance = distance
                closest = city
        if closest is None:
            raise EmptyCorpus("No cities found")
        return NearestCity(city=closest, distance=round(min_distance, DISTANCE_DECIMALS))

    def nearest_to(self, longitude: Any, latitude: Any) -> NearestCity:
        """Validate raw coordinates (longitude first, as the API names them) and call ``nearest``."""
        lat, lon = parse_point(longitude, latitude)
        return self.nearest(lat, lon)
