"""
City endpoints for API v1.

Public, unauthenticated read access to the city corpus: paginated
listing, name search, country filter, lookup by id and the nearest
city to a coordinate.  Handlers are plain functions rather than
coroutines so FastAPI runs them in its thread pool; the nearest-city
scan touches every row and must not block the event loop.

The more specific paths are registered before ``/{city_id}``.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from citylist_api.app.api.deps import get_query_engine
from citylist_api.app.api.responses import success
from citylist_api.app.services.query_engine import QueryEngine


router = APIRouter()


@router.get("")
def list_cities(
    limit: Optional[int] = Query(None, description="Cities per page (default 100, max 1000)"),
    offset: Optional[int] = Query(None, description="Number of cities to skip"),
    engine: QueryEngine = Depends(get_query_engine),
) -> Dict[str, Any]:
    """Return a page of cities in id order together with the total count."""
    page = engine.list_cities(limit=limit, offset=offset)
    return success(page)


@router.get("/search")
def search_cities(
    q: Optional[str] = Query(None, description="Case-insensitive substring of the city name (min 2 chars)"),
    limit: Optional[int] = Query(None, description="Maximum results (default 50, max 100)"),
    engine: QueryEngine = Depends(get_query_engine),
) -> Dict[str, Any]:
    cities = engine.search(q, limit=limit)
    return success({"cities": cities, "query": q, "count": len(cities)})


@router.get("/coordinates")
def closest_city_get(
    longitude: Optional[str] = Query(None, description="Longitude in [-180, 180]"),
    latitude: Optional[str] = Query(None, description="Latitude in [-90, 90]"),
    engine: QueryEngine = Depends(get_query_engine),
) -> Dict[str, Any]:
    """Return the closest city to a point and its distance in km."""
    return success(engine.nearest_to(longitude, latitude))


@router.post("/coordinates")
def closest_city_post(
    body: Dict[str, Any] = Body(..., examples=[{"longitude": -0.12574, "latitude": 51.50853}]),
    engine: QueryEngine = Depends(get_query_engine),
) -> Dict[str, Any]:
    """Same as the GET variant with coordinates in a JSON body."""
    return success(engine.nearest_to(body.get("longitude"), body.get("latitude")))


@router.get("/country/{code}")
def cities_by_country(
    code: str,
    limit: Optional[int] = Query(None, description="Maximum results (default 100, max 1000)"),
    engine: QueryEngine = Depends(get_query_engine),
) -> Dict[str, Any]:
    country, cities = engine.by_country(code, limit=limit)
    return success({"cities": cities, "country": country, "count": len(cities)})


@router.get("/{city_id}")
def get_city(city_id: int, engine: QueryEngine = Depends(get_query_engine)) -> Dict[str, Any]:
    return success(engine.get_city(city_id))
