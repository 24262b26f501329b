"""
Service layer for runtime settings.

Settings are key/value pairs stored in the ``settings`` table.  Each
carries a declared ``type`` (``string``, ``number``, ``boolean`` or
``json``) that updates are validated against, plus a ``category`` and
``description`` used by the admin pages.  Values are stored as text;
``_deserialize`` converts them back for API responses.

The set of keys is fixed by the defaults seeded in ``core.db``.
Updating an unknown key is an error rather than an implicit insert.
"""

import json
import logging
import math
from typing import Any, Dict, List, Optional

from citylist_api.app.core.db import get_connection
from citylist_api.app.core.exceptions import InvalidSettingValue, NotFound
from citylist_api.app.services.audit_service import AuditService


logger = logging.getLogger(__name__)


class SettingsService:
    """Service for reading and updating application settings."""

    def __init__(self, db_path: str, audit: AuditService):
        self.db_path = db_path
        self.audit = audit

    async def list_settings(self) -> List[Dict[str, Any]]:
        """Return all settings ordered by category then key."""
        conn = get_connection(self.db_path)
        try:
            rows = conn.execute(
                "SELECT key, value, type, category, description FROM settings ORDER BY category, key"
            ).fetchall()
            return [self._row_to_dict(row) for row in rows]
        finally:
            conn.close()

    async def get_setting(self, key: str) -> Optional[Dict[str, Any]]:
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                "SELECT key, value, type, category, description FROM settings WHERE key = ?", (key,)
            ).fetchone()
            return self._row_to_dict(row) if row else None
        finally:
            conn.close()

    def get_value(self, key: str, default: str) -> str:
        """Return the raw stored text of a setting, or ``default``.

        Synchronous on purpose: used while rendering pages and by the
        command line launcher outside an event loop.
        """
        conn = get_connection(self.db_path)
        try:
            row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
            return row["value"] if row else default
        finally:
            conn.close()

    def set_value(self, key: str, value: str) -> None:
        """Overwrite the raw text of an existing setting without auditing.

        Used by the launcher to persist the chosen HTTP port.
        """
        conn = get_connection(self.db_path)
        try:
            conn.execute(
                "UPDATE settings SET value = ?, updated_at = CURRENT_TIMESTAMP WHERE key = ?",
                (value, key),
            )
            conn.commit()
        finally:
            conn.close()

    async def update_setting(
        self,
        key: str,
        value: Any,
        user: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Validate and store a new value for an existing setting.

        Both successful and rejected updates are written to the audit
        log.  Returns ``{"key": ..., "value": ...}`` with the value
        converted to its declared type.

        Raises
        ------
        NotFound
            If ``key`` is not a known setting.
        InvalidSettingValue
            If ``value`` does not fit the setting's type.
        """
        conn = get_connection(self.db_path)
        try:
            row = conn.execute("SELECT value, type FROM settings WHERE key = ?", (key,)).fetchone()
            if row is None:
                raise NotFound(f"Setting {key!r} not found")
            old_value = row["value"]
            try:
                serialized = self._serialize(value, row["type"])
            except InvalidSettingValue as exc:
                await self.audit.log(
                    action="update",
                    resource=f"setting:{key}",
                    user=user,
                    old_value=old_value,
                    new_value=None if value is None else str(value),
                    ip_address=ip_address,
                    user_agent=user_agent,
                    success=False,
                    error_message=exc.message,
                )
                raise
            conn.execute(
                "UPDATE settings SET value = ?, updated_at = CURRENT_TIMESTAMP, updated_by = ? WHERE key = ?",
                (serialized, user, key),
            )
            conn.commit()
            setting_type = row["type"]
        finally:
            conn.close()

        logger.info("Setting %s updated", key)
        await self.audit.log(
            action="update",
            resource=f"setting:{key}",
            user=user,
            old_value=old_value,
            new_value=serialized,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return {"key": key, "value": self._deserialize(serialized, setting_type)}

    async def count(self) -> int:
        conn = get_connection(self.db_path)
        try:
            return conn.execute("SELECT COUNT(*) FROM settings").fetchone()[0]
        finally:
            conn.close()

    @classmethod
    def _row_to_dict(cls, row) -> Dict[str, Any]:
        return {
            "key": row["key"],
            "value": cls._deserialize(row["value"], row["type"]),
            "type": row["type"],
            "category": row["category"],
            "description": row["description"],
        }

    @staticmethod
    def _serialize(value: Any, type_str: str) -> str:
        """Convert an incoming value to stored text, validating it against ``type_str``."""
        if value is None:
            raise InvalidSettingValue("Setting value is required")
        if type_str == "number":
            if isinstance(value, bool):
                raise InvalidSettingValue("Value must be a number")
            try:
                number = float(value)
            except (TypeError, ValueError):
                raise InvalidSettingValue("Value must be a number")
            if not math.isfinite(number):
                raise InvalidSettingValue("Value must be a finite number")
            return str(int(number)) if number.is_integer() else str(number)
        if type_str == "boolean":
            if isinstance(value, bool):
                return "true" if value else "false"
            text = str(value).strip().lower()
            if text in {"true", "1", "yes"}:
                return "true"
            if text in {"false", "0", "no"}:
                return "false"
            raise InvalidSettingValue("Value must be a boolean")
        if type_str == "json":
            if isinstance(value, str):
                try:
                    json.loads(value)
                except ValueError:
                    raise InvalidSettingValue("Value must be valid JSON")
                return value
            return json.dumps(value)
        if not isinstance(value, str):
            raise InvalidSettingValue("Value must be a string")
        return value

    @staticmethod
    def _deserialize(value: str, type_str: str) -> Any:
        """Convert stored text back to a Python value based on type."""
        if type_str == "number":
            number = float(value)
            return int(number) if number.is_integer() else number
        if type_str == "boolean":
            return value == "true"
        if type_str == "json":
            return json.loads(value)
        return value
