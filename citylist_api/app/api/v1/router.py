"""
Top level router for version 1 of the API.

Aggregates the domain routers under the ``/api/v1`` prefix applied by
``main.create_app``.
"""

from fastapi import APIRouter

from .endpoints import admin, cities, system


router = APIRouter()

router.include_router(system.router, tags=["system"])
router.include_router(cities.router, prefix="/cities", tags=["cities"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
