"""
Admin endpoints for API v1.

All routes require ``Authorization: Bearer <admin token>``.  They let
the administrator read and change runtime settings, inspect server
statistics and read the audit log that setting changes produce.
"""

import os
import platform
import threading
import time
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, Request

from citylist_api.app.api.deps import (
    get_app_settings,
    get_audit_service,
    get_city_store,
    get_settings_service,
)
from citylist_api.app.api.responses import success
from citylist_api.app.core.config import Settings
from citylist_api.app.core.db import SQLITE_MAX_INTEGER
from citylist_api.app.core.exceptions import NotFound
from citylist_api.app.core.security import require_admin_token
from citylist_api.app.schemas.settings import SettingUpdate
from citylist_api.app.services.audit_service import AuditService
from citylist_api.app.services.city_store import CityStore
from citylist_api.app.services.settings_service import SettingsService


router = APIRouter(dependencies=[Depends(require_admin_token)])


@router.get("/settings")
async def list_settings(service: SettingsService = Depends(get_settings_service)) -> Dict[str, Any]:
    """List all settings grouped by category."""
    settings_list = await service.list_settings()
    return success({"settings": settings_list, "count": len(settings_list)})


@router.get("/settings/{key}")
async def get_setting(key: str, service: SettingsService = Depends(get_settings_service)) -> Dict[str, Any]:
    """Return one setting with its type, category and description."""
    setting = await service.get_setting(key)
    if setting is None:
        raise NotFound(f"Setting {key!r} not found")
    return success(setting)


@router.put("/settings")
async def update_setting(
    body: SettingUpdate,
    request: Request,
    admin: str = Depends(require_admin_token),
    service: SettingsService = Depends(get_settings_service),
) -> Dict[str, Any]:
    """Change the value of one existing setting.

    The value must match the setting's declared type.  The change,
    or the rejected attempt, is recorded in the audit log.
    """
    updated = await service.update_setting(
        body.key,
        body.value,
        user=admin,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return success(updated)


@router.get("/stats")
async def server_stats(
    request: Request,
    store: CityStore = Depends(get_city_store),
    service: SettingsService = Depends(get_settings_service),
    app_settings: Settings = Depends(get_app_settings),
) -> Dict[str, Any]:
    return success(
        {
            "cities": store.count(),
            "settings": await service.count(),
            "uptime_seconds": int(time.time() - request.app.state.started_at),
            "python_version": platform.python_version(),
            "threads": threading.active_count(),
            "pid": os.getpid(),
            "version": app_settings.api_version,
            "dev_mode": app_settings.dev_mode,
        }
    )


@router.get("/audit")
async def list_audit_logs(
    limit: int = Query(100, ge=1, le=500, description="Maximum number of records"),
    offset: int = Query(0, ge=0, le=SQLITE_MAX_INTEGER, description="Number of records to skip"),
    audit: AuditService = Depends(get_audit_service),
) -> Dict[str, Any]:
    """Return audit records, newest first."""
    logs = await audit.list_logs(limit=limit, offset=offset)
    return success({"logs": logs, "count": len(logs)})
