"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields.  The
command line launcher overrides the directory and network fields from
its flags before building the application, and tests construct their
own instance pointing at temporary directories.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path


PACKAGE_DIR = Path(__file__).resolve().parent.parent.parent  # citylist_api/
DEFAULT_DATASET = str(PACKAGE_DIR / "data" / "citylist.json")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = field(default_factory=lambda: os.getenv("PROJECT_NAME", "CityList API"))
    api_version: str = field(default_factory=lambda: os.getenv("API_VERSION", "0.0.1"))
    dev_mode: bool = field(default_factory=lambda: _env_flag("DEBUG"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Directories.  Empty values are resolved to OS specific defaults by
    # ``core.paths.resolve_directories``.
    config_dir: str = field(default_factory=lambda: os.getenv("CONFIG_DIR", ""))
    data_dir: str = field(default_factory=lambda: os.getenv("DATA_DIR", ""))
    logs_dir: str = field(default_factory=lambda: os.getenv("LOGS_DIR", ""))

    # Path to the SQLite database file.  A relative path is resolved
    # against ``data_dir`` by the ``db`` module.
    database_url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "citylist.db"))

    # JSON dataset loaded into the city store on first start.
    dataset_path: str = field(default_factory=lambda: os.getenv("CITYLIST_DATASET", DEFAULT_DATASET))

    address: str = field(default_factory=lambda: os.getenv("ADDRESS", "::"))
    port: str = field(default_factory=lambda: os.getenv("PORT", ""))

    # Requests per minute allowed from one client address; 0 disables.
    rate_limit_per_minute: int = field(default_factory=lambda: int(os.getenv("RATE_LIMIT_PER_MINUTE", "100")))

    # Admin credentials are generated on first start unless disabled
    # (for example by embedders that provision them separately).
    generate_admin_credentials: bool = True


# Instantiate settings once for the command line entry point.  Code that
# builds an application should accept an explicit ``Settings`` instance
# instead of importing this one.
settings = Settings()
