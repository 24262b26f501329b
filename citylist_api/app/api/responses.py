"""
JSON envelope used by every API response.

Success::

    {"success": true, "data": ..., "timestamp": "2026-01-01T00:00:00Z"}

Error::

    {"success": false, "error": {"code": "...", "message": "..."}, "timestamp": "..."}
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def success(data: Any) -> Dict[str, Any]:
    return {"success": True, "data": jsonable_encoder(data), "timestamp": utc_timestamp()}


def error_response(code: str, message: str, status_code: int, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": {"code": code, "message": message},
            "timestamp": utc_timestamp(),
        },
        headers=headers,
    )
