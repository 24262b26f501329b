"""Pydantic schemas for the admin settings API."""

from typing import Any

from pydantic import BaseModel, Field


class SettingUpdate(BaseModel):
    """Body of ``PUT /api/v1/admin/settings``."""

    key: str = Field(..., min_length=1, examples=["server.title"])
    value: Any = Field(..., examples=["My City API"])
