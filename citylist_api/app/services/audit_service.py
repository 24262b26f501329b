"""
Audit service for recording and querying administrative actions.

Writes audit events to the ``audit_logs`` table and retrieves them
newest first with pagination.  Each record notes who acted, what
resource was touched, the old and new values, where the request came
from and whether the action succeeded.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from citylist_api.app.core.db import get_connection


class AuditService:
    """Service class for writing and retrieving audit logs."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def log(
        self,
        action: str,
        resource: str,
        user: Optional[str] = None,
        old_value: Optional[str] = None,
        new_value: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        success: bool = True,
        error_message: Optional[str] = None,
    ) -> None:
        """Insert a new audit record.

        Parameters
        ----------
        action : str
            Short verb for the action (e.g. ``"update"``, ``"create"``).
        resource : str
            What was affected, e.g. ``"setting:server.title"``.
        user : Optional[str]
            Acting principal; ``None`` for system initiated actions.
        success : bool
            Whether the action was applied.  Failed attempts are logged
            with ``error_message``.
        """
        conn = get_connection(self.db_path)
        try:
            conn.execute(
                """
                INSERT INTO audit_logs
                    (user, action, resource, old_value, new_value, ip_address, user_agent, success, error_message)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (user, action, resource, old_value, new_value, ip_address, user_agent, int(success), error_message),
            )
            conn.commit()
        finally:
            conn.close()

    async def list_logs(self, limit: int = 100, offset: int = 0) -> List[Dict[str, Any]]:
        """Return audit records ordered newest first."""
        conn = get_connection(self.db_path)
        try:
            rows = conn.execute(
                "SELECT * FROM audit_logs ORDER BY timestamp DESC, id DESC LIMIT ? OFFSET ?",
                (limit, offset),
            ).fetchall()
            logs = []
            for row in rows:
                record = dict(row)
                record["success"] = bool(record["success"])
                logs.append(record)
            return logs
        finally:
            conn.close()
