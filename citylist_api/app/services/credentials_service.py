"""
Admin credential storage.

The ``admin_credentials`` table holds a single row (``id = 1``) with
the administrator's username and the hashes of the password and API
token.  ``ensure_admin`` creates that row on first start and writes
the plaintext values once to a credentials file readable only by the
owner.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from citylist_api.app.core.db import get_connection
from citylist_api.app.core.security import (
    ADMIN_USERNAME,
    AdminCredentials,
    generate_admin_credentials,
    verify_secret,
)


logger = logging.getLogger(__name__)

CREDENTIALS_FILENAME = "admin_credentials"

CREDENTIALS_TEMPLATE = """==============================================================
CityList API - Admin Credentials
==============================================================
WEB UI LOGIN:
  URL:      {server_url}/admin
  Username: {username}

API ACCESS:
  URL:      {server_url}/api/v1/admin
  Header:   Authorization: Bearer {token}

CREDENTIALS:
  Username: {username}
  Password: {password}
  Token:    {token}

Created: {created}
==============================================================
Keep these credentials secure!
They will not be shown again after this initial setup.
==============================================================
"""


class CredentialsService:
    """Create and verify the administrator's credentials."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def _fetch(self):
        conn = get_connection(self.db_path)
        try:
            return conn.execute(
                "SELECT username, password_hash, token_hash FROM admin_credentials WHERE id = 1"
            ).fetchone()
        finally:
            conn.close()

    def exists(self) -> bool:
        return self._fetch() is not None

    def username(self) -> str:
        row = self._fetch()
        return row["username"] if row else ADMIN_USERNAME

    def store(self, creds: AdminCredentials) -> None:
        conn = get_connection(self.db_path)
        try:
            conn.execute(
                "INSERT INTO admin_credentials (id, username, password_hash, token_hash) VALUES (1, ?, ?, ?)",
                (creds.username, creds.password_hash, creds.token_hash),
            )
            conn.commit()
        finally:
            conn.close()

    def ensure_admin(self, config_dir: Optional[str], server_url: str) -> Optional[AdminCredentials]:
        """Generate and persist admin credentials unless they exist.

        Returns the new credentials (with plaintext values) when they
        were created, otherwise ``None``.  A failure to write the
        credentials file is logged but does not undo the stored hashes.
        """
        if self.exists():
            return None
        logger.info("Generating admin credentials (first run)")
        creds = generate_admin_credentials()
        self.store(creds)
        if config_dir:
            try:
                path = save_credentials_file(creds, config_dir, server_url)
                logger.info("Admin credentials saved to %s", path)
            except OSError as exc:
                logger.warning("Failed to save credentials file: %s", exc)
        return creds

    def verify_token(self, token: str) -> bool:
        row = self._fetch()
        return bool(row) and verify_secret(token, row["token_hash"])

    def verify_password(self, username: str, password: str) -> bool:
        row = self._fetch()
        if not row or username != row["username"]:
            return False
        return verify_secret(password, row["password_hash"])


def save_credentials_file(creds: AdminCredentials, config_dir: str, server_url: str) -> Path:
    """Write the plaintext credentials to ``<config_dir>/admin_credentials`` with mode 0600."""
    path = Path(config_dir) / CREDENTIALS_FILENAME
    path.parent.mkdir(parents=True, exist_ok=True)
    content = CREDENTIALS_TEMPLATE.format(
        server_url=server_url,
        username=creds.username,
        password=creds.password,
        token=creds.token,
        created=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
    )
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as fh:
        fh.write(content)
    os.chmod(path, 0o600)
    return path
