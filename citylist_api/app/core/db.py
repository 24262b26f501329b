"""
SQLite database integration and simple migration system.

This module provides functions for resolving the database file
(``get_database_path``), obtaining a connection (``get_connection``)
and applying migrations at application start (``init_db``).  The city
corpus, runtime settings, admin credentials and the audit log all live
in a single SQLite file.

Every operation opens its own short lived connection.  Once the city
corpus is loaded the database is only read on the query path, so
concurrent requests never share a connection or a cursor.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .config import Settings


logger = logging.getLogger(__name__)

# Range of an SQLite INTEGER; larger Python ints cannot be bound.
SQLITE_MIN_INTEGER = -(2 ** 63)
SQLITE_MAX_INTEGER = 2 ** 63 - 1


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: city corpus
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS cities (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            country TEXT NOT NULL,
            lon REAL NOT NULL,
            lat REAL NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_cities_name ON cities(name);
        CREATE INDEX IF NOT EXISTS idx_cities_country ON cities(country);
        """,
    ),
    # Migration 2: admin credentials (a single row with id = 1)
    (
        2,
        """
        CREATE TABLE IF NOT EXISTS admin_credentials (
            id INTEGER PRIMARY KEY,
            username TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            token_hash TEXT NOT NULL,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        );
        """,
    ),
    # Migration 3: runtime settings
    (
        3,
        """
        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            type TEXT NOT NULL CHECK (type IN ('string', 'number', 'boolean', 'json')),
            category TEXT NOT NULL,
            description TEXT,
            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_by TEXT
        );
        """,
    ),
    # Migration 4: audit log
    (
        4,
        """
        CREATE TABLE IF NOT EXISTS audit_logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user TEXT,
            action TEXT NOT NULL,
            resource TEXT NOT NULL,
            old_value TEXT,
            new_value TEXT,
            ip_address TEXT,
            user_agent TEXT,
            success INTEGER NOT NULL,
            error_message TEXT,
            timestamp TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
        CREATE INDEX IF NOT EXISTS idx_audit_logs_timestamp ON audit_logs(timestamp);
        """,
    ),
]


# (key, value, type, category, description)
DEFAULT_SETTINGS: list[tuple[str, str, str, str, str]] = [
    ("server.title", "CityList API", "string", "Server", "Application display name"),
    ("server.tagline", "Global Cities Database", "string", "Server", "Application tagline"),
    (
        "server.description",
        "A comprehensive API for accessing global city information including coordinates and country data.",
        "string",
        "Server",
        "Application description",
    ),
    ("server.http_port", "0", "number", "Server", "HTTP port (0 = auto-generate random 64000-64999)"),
    ("server.timezone", "UTC", "string", "Server", "Server timezone"),
    ("security.session_timeout", "43200", "number", "Security", "Session timeout in minutes (30 days)"),
    ("security.max_login_attempts", "5", "number", "Security", "Maximum login attempts"),
    ("security.password_min_length", "8", "number", "Security", "Minimum password length"),
    (
        "robots.txt",
        "User-agent: *\nDisallow: /admin/\nDisallow: /api/v1/admin/",
        "string",
        "Server",
        "Robots.txt content",
    ),
    (
        "security.txt",
        "Contact: mailto:security@example.com\nExpires: 2026-12-31T23:59:59Z\nPreferred-Languages: en",
        "string",
        "Server",
        "Security.txt content",
    ),
]


def get_database_path(settings: Settings) -> str:
    """Compute the path to the SQLite database file.

    If ``settings.database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to ``settings.data_dir`` (or the
    current working directory when no data directory is configured).
    """
    db_url = settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(settings.data_dir) if settings.data_dir else Path.cwd()
    return str((base_dir / db_url).resolve())


def get_connection(db_path: str) -> sqlite3.Connection:
    """Create and return a new SQLite connection with name-keyed rows."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_cursor(db_path: str) -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor and closes the connection on exit."""
    conn = get_connection(db_path)
    try:
        yield conn.cursor()
        conn.commit()
    finally:
        conn.close()


def init_db(db_path: str) -> None:
    """Create the database file if needed and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version and applies any newer entries of
    ``MIGRATIONS``.  Default settings are inserted without touching
    values an administrator has already changed.
    """
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    with get_cursor(db_path) as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                logger.info("Applied migration %s", version)
                current_version = version

        cursor.executemany(
            "INSERT OR IGNORE INTO settings (key, value, type, category, description)"
            " VALUES (?, ?, ?, ?, ?)",
            DEFAULT_SETTINGS,
        )
