"""
Pydantic models for city data.

``CityRecord`` mirrors one entry of the dataset file (coordinates
nested under ``coord``) and is validated strictly at ingestion time so
that malformed records can be skipped.  ``City`` is the immutable,
flat shape stored in the city store and returned by the API.
"""

from typing import List

from pydantic import BaseModel, Field, StrictInt, StrictStr


class City(BaseModel):
    """A city as stored and served."""

    id: int = Field(..., examples=[2643743])
    name: str = Field(..., examples=["London"])
    country: str = Field(..., description="ISO 3166-1 alpha-2 code", examples=["GB"])
    lon: float = Field(..., examples=[-0.12574])
    lat: float = Field(..., examples=[51.50853])

    model_config = {"frozen": True}


class Coord(BaseModel):
    lon: float = Field(..., ge=-180, le=180, strict=True, allow_inf_nan=False)
    lat: float = Field(..., ge=-90, le=90, strict=True, allow_inf_nan=False)


class CityRecord(BaseModel):
    """One record of the source dataset."""

    id: StrictInt
    name: StrictStr = Field(..., min_length=1)
    country: StrictStr = Field(..., pattern=r"^[A-Z]{2}$")
    coord: Coord

    def to_city(self) -> City:
        return City(id=self.id, name=self.name, country=self.country, lon=self.coord.lon, lat=self.coord.lat)


class CityPage(BaseModel):
    """A window of the corpus together with the corpus size."""

    cities: List[City]
    total: int
    limit: int
    offset: int


class NearestCity(BaseModel):
    """Closest city to a point and its distance in kilometres (2 decimals)."""

    city: City
    distance: float
