"""
Security helpers for admin authentication.

The API has exactly one privileged principal, the administrator,
created on first start.  Two authentication paths exist:

* the admin JSON API under ``/api/v1/admin`` expects
  ``Authorization: Bearer <token>``;
* the admin HTML pages under ``/admin`` use HTTP Basic authentication
  with the administrator's username and password.

Both the password and the token are stored only as PBKDF2-HMAC-SHA256
digests (``salthex$hashhex``).  Plaintext values exist in memory
exactly once, when ``generate_admin_credentials`` creates them.
"""

import hashlib
import hmac
import logging
import os
import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import (
    HTTPAuthorizationCredentials,
    HTTPBasic,
    HTTPBasicCredentials,
    HTTPBearer,
)

from .exceptions import Unauthorized


logger = logging.getLogger(__name__)

ADMIN_USERNAME = "administrator"
PASSWORD_LENGTH = 16
TOKEN_LENGTH = 32
PBKDF2_ITERATIONS = 100_000


@dataclass(frozen=True)
class AdminCredentials:
    """Freshly generated admin credentials.

    ``password`` and ``token`` are plaintext and must only be shown to
    the operator once; persist ``password_hash`` and ``token_hash``.
    """

    username: str
    password: str
    password_hash: str
    token: str
    token_hash: str


def generate_secret(length: int) -> str:
    """Return a URL-safe random string of exactly ``length`` characters."""
    return secrets.token_urlsafe(length)[:length]


def hash_secret(secret: str) -> str:
    """Hash a password or token using PBKDF2-HMAC with SHA-256.

    A 16-byte random salt is generated for each value.  The result
    contains the salt and digest in hex separated by ``$``.
    """
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", secret.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_secret(plain: str, hashed: str) -> bool:
    """Verify a plaintext value against a stored ``salt$hash`` string.

    Malformed stored values never match.
    """
    try:
        salt_hex, hash_hex = hashed.split("$", 1)
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except (AttributeError, ValueError):
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)


def generate_admin_credentials(username: str = ADMIN_USERNAME) -> AdminCredentials:
    """Create a random admin password (16 chars) and API token (32 chars)."""
    password = generate_secret(PASSWORD_LENGTH)
    token = generate_secret(TOKEN_LENGTH)
    return AdminCredentials(
        username=username,
        password=password,
        password_hash=hash_secret(password),
        token=token,
        token_hash=hash_secret(token),
    )


bearer_scheme = HTTPBearer(auto_error=False)
basic_scheme = HTTPBasic(auto_error=False, realm="Admin Area")


def require_admin_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Dependency guarding the admin JSON API.

    Raises ``Unauthorized`` (rendered as the JSON error envelope) when
    the bearer token is missing or does not match the stored hash.
    Returns the admin username on success.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthorized("Missing or invalid Authorization header")
    service = request.app.state.credentials_service
    if not service.verify_token(credentials.credentials):
        logger.warning("Rejected admin API token from %s", _client_host(request))
        raise Unauthorized("Invalid token")
    return service.username()


def require_admin_basic(
    request: Request,
    credentials: Optional[HTTPBasicCredentials] = Depends(basic_scheme),
) -> str:
    """Dependency guarding the admin HTML pages with HTTP Basic auth."""
    challenge = {"WWW-Authenticate": 'Basic realm="Admin Area"'}
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized", headers=challenge)
    service = request.app.state.credentials_service
    if not service.verify_password(credentials.username, credentials.password):
        logger.warning("Rejected admin login for %r from %s", credentials.username, _client_host(request))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized", headers=challenge)
    return credentials.username


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"
