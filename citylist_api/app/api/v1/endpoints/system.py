"""
Service level endpoints for API v1: health and the raw dataset.
"""

from pathlib import Path
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from citylist_api.app.api.deps import get_app_settings
from citylist_api.app.api.responses import success
from citylist_api.app.core.config import Settings
from citylist_api.app.core.exceptions import NotFound


router = APIRouter()


@router.get("/health")
async def api_health(app_settings: Settings = Depends(get_app_settings)) -> Dict[str, Any]:
    return success({"status": "healthy", "version": app_settings.api_version})


@router.get("/citylist.json")
async def raw_dataset(app_settings: Settings = Depends(get_app_settings)) -> FileResponse:
    """Download the dataset file the city store was loaded from."""
    path = Path(app_settings.dataset_path)
    if not path.is_file():
        raise NotFound("Dataset file not available")
    return FileResponse(path, media_type="application/json", filename="citylist.json")
