import os
import stat
import sys

import pytest

from citylist_api.app.core.security import (
    ADMIN_USERNAME,
    PASSWORD_LENGTH,
    TOKEN_LENGTH,
    generate_admin_credentials,
    hash_secret,
    verify_secret,
)
from citylist_api.app.services.credentials_service import (
    CREDENTIALS_FILENAME,
    CredentialsService,
    save_credentials_file,
)


def test_hash_and_verify():
    hashed = hash_secret("s3cret")
    assert "$" in hashed
    assert "s3cret" not in hashed
    assert verify_secret("s3cret", hashed)
    assert not verify_secret("wrong", hashed)


def test_hash_is_salted():
    assert hash_secret("same") != hash_secret("same")


@pytest.mark.parametrize("stored", ["", "nodollar", "zz$zz", None])
def test_verify_malformed_hash(stored):
    assert not verify_secret("anything", stored)


def test_generate_admin_credentials():
    creds = generate_admin_credentials()
    assert creds.username == ADMIN_USERNAME
    assert len(creds.password) == PASSWORD_LENGTH
    assert len(creds.token) == TOKEN_LENGTH
    assert verify_secret(creds.password, creds.password_hash)
    assert verify_secret(creds.token, creds.token_hash)


def test_ensure_admin_creates_once(db_path, tmp_path):
    service = CredentialsService(db_path)
    assert not service.exists()

    creds = service.ensure_admin(str(tmp_path / "config"), "http://192.0.2.10:64123")
    assert creds is not None
    assert service.exists()
    assert service.username() == ADMIN_USERNAME
    assert service.verify_token(creds.token)
    assert service.verify_password(ADMIN_USERNAME, creds.password)
    assert not service.verify_password("root", creds.password)
    assert not service.verify_token(creds.password)

    assert service.ensure_admin(str(tmp_path / "config"), "http://192.0.2.10:64123") is None


def test_credentials_file(tmp_path):
    creds = generate_admin_credentials()
    path = save_credentials_file(creds, str(tmp_path / "config"), "http://[2001:db8::1]:64123")
    assert path.name == CREDENTIALS_FILENAME
    content = path.read_text(encoding="utf-8")
    assert creds.password in content
    assert creds.token in content
    assert "http://[2001:db8::1]:64123/admin" in content
    if sys.platform != "win32":
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
