"""
FastAPI dependencies exposing the per-application service instances.

``create_app`` stores one instance of each service on ``app.state``;
handlers receive them through these functions instead of importing
module level globals.
"""

from fastapi import Request

from citylist_api.app.core.config import Settings
from citylist_api.app.services.audit_service import AuditService
from citylist_api.app.services.city_store import CityStore
from citylist_api.app.services.query_engine import QueryEngine
from citylist_api.app.services.settings_service import SettingsService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_city_store(request: Request) -> CityStore:
    return request.app.state.city_store


def get_query_engine(request: Request) -> QueryEngine:
    return request.app.state.query_engine


def get_settings_service(request: Request) -> SettingsService:
    return request.app.state.settings_service


def get_audit_service(request: Request) -> AuditService:
    return request.app.state.audit_service
