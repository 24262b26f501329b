"""
Application error types.

Every error raised by the city store, the query engine or the admin
services derives from ``CityListError``.  Each carries a machine
readable ``code``, a human readable ``message`` and the HTTP status the
API layer should answer with.  The exception handlers registered in
``main.py`` turn them into the standard error envelope, so none of them
ever reaches the ASGI server as an unhandled exception.
"""

from typing import Optional

from fastapi import status


class CityListError(Exception):
    """Base application error."""

    code = "INTERNAL_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal error"
    headers = None

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class LoadError(CityListError):
    """The city dataset could not be read or decoded as a whole."""

    code = "LOAD_ERROR"
    default_message = "Failed to load city dataset"


class InvalidQuery(CityListError):
    """Search term missing or too short."""

    code = "INVALID_QUERY"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Search query must be at least 2 characters"


class InvalidCountryCode(CityListError):
    code = "INVALID_COUNTRY"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Country code must be 2 letters"


class InvalidCoordinates(CityListError):
    """Longitude or latitude missing, non-numeric or out of range."""

    code = "INVALID_COORDINATES"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid coordinates"


class EmptyCorpus(CityListError):
    code = "NO_CITIES"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "No cities found"


class NotFound(CityListError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class InvalidSettingValue(CityListError):
    """A setting update does not match the setting's declared type."""

    code = "INVALID_SETTING"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid setting value"


class Unauthorized(CityListError):
    code = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"
    headers = {"WWW-Authenticate": "Bearer"}


class RateLimited(CityListError):
    code = "RATE_LIMITED"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests"
