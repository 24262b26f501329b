"""
Application package for the CityList API.

``main`` holds the application factory.  The rest is organised by
concern: ``core`` (configuration, database, security, errors),
``services`` (city store, query engine, settings, audit, credentials),
``schemas`` (pydantic models), ``api`` (versioned JSON routes) and
``web`` (server rendered pages).
"""

from .main import create_app  # noqa: F401
