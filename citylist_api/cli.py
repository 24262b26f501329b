"""Command line launcher for the CityList API.

Resolves the configuration, data and log directories, picks the HTTP
port, builds the application and serves it with uvicorn.  On the
first run the generated admin credentials are printed once.

Usage:
    citylist [--version] [--status] [--config DIR] [--data DIR]
             [--logs DIR] [--port PORT] [--address ADDR] [--dev]
"""
import argparse
import asyncio
import logging
import random
import sys
from dataclasses import replace
from typing import List, Optional

from uvicorn import Config, Server

from citylist_api import __version__
from citylist_api.app.core.config import Settings, settings as env_settings
from citylist_api.app.core.db import get_database_path, init_db
from citylist_api.app.core.logging_config import setup_logging
from citylist_api.app.core.network import get_accessible_url
from citylist_api.app.core.paths import resolve_directories
from citylist_api.app.main import create_app
from citylist_api.app.services.audit_service import AuditService
from citylist_api.app.services.city_store import CityStore
from citylist_api.app.services.credentials_service import CREDENTIALS_FILENAME, CredentialsService
from citylist_api.app.services.settings_service import SettingsService


logger = logging.getLogger(__name__)

RANDOM_PORT_MIN = 64000
RANDOM_PORT_MAX = 64999


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="citylist", description="CityList API server")
    parser.add_argument("--version", action="store_true", help="print the version and exit")
    parser.add_argument("--status", action="store_true", help="print server status and exit")
    parser.add_argument("--config", metavar="DIR", default="", help="configuration directory")
    parser.add_argument("--data", metavar="DIR", default="", help="data directory (database)")
    parser.add_argument("--logs", metavar="DIR", default="", help="log directory")
    parser.add_argument("--port", default="", help="HTTP port")
    parser.add_argument("--address", default="", help="listen address")
    parser.add_argument("--dev", action="store_true", help="development mode")
    return parser


def resolve_settings(args: argparse.Namespace, base: Settings = env_settings) -> Settings:
    """Apply command line flags over environment settings.

    Flags win over environment variables, which win over the OS
    specific default directories.
    """
    config_dir, data_dir, logs_dir = resolve_directories(
        args.config or base.config_dir,
        args.data or base.data_dir,
        args.logs or base.logs_dir,
    )
    return replace(
        base,
        config_dir=config_dir,
        data_dir=data_dir,
        logs_dir=logs_dir,
        address=args.address or base.address,
        port=args.port or base.port,
        dev_mode=args.dev or base.dev_mode,
        log_level="DEBUG" if args.dev else base.log_level,
    )


def select_port(requested: str, settings_service: SettingsService) -> int:
    """Return the HTTP port to listen on and persist it.

    Priority: the requested port (flag or ``PORT``), the stored
    ``server.http_port`` setting, then a random port in 64000-64999.
    """
    if requested:
        try:
            port = int(requested)
        except ValueError:
            raise SystemExit(f"Invalid port: {requested!r}")
    else:
        try:
            port = int(settings_service.get_value("server.http_port", "0"))
        except ValueError:
            port = 0
        if port <= 0:
            port = random.randint(RANDOM_PORT_MIN, RANDOM_PORT_MAX)
            logger.info("Selected random port %s", port)
    if not 0 < port < 65536:
        raise SystemExit(f"Port out of range: {port}")
    settings_service.set_value("server.http_port", str(port))
    return port


def print_status(settings: Settings) -> None:
    db_path = get_database_path(settings)
    init_db(db_path)
    settings_service = SettingsService(db_path, AuditService(db_path))
    print(f"CityList API {__version__}")
    print(f"  Config:      {settings.config_dir}")
    print(f"  Data:        {settings.data_dir}")
    print(f"  Logs:        {settings.logs_dir}")
    print(f"  Database:    {db_path}")
    print(f"  Dataset:     {settings.dataset_path}")
    print(f"  Cities:      {CityStore(db_path).count()}")
    print(f"  Port:        {settings.port or settings_service.get_value('server.http_port', '0')}")
    print(f"  Admin setup: {'yes' if CredentialsService(db_path).exists() else 'no'}")


def print_banner(app, settings: Settings) -> None:
    base_url = get_accessible_url(settings.address, settings.port)
    print(f"CityList API {__version__} listening on {settings.address} port {settings.port}")
    print(f"  Home:     {base_url}/")
    print(f"  API:      {base_url}/api/v1")
    print(f"  Admin:    {base_url}/admin")
    creds = app.state.admin_credentials
    if creds is not None:
        print("")
        print("Admin credentials (shown once):")
        print(f"  Username: {creds.username}")
        print(f"  Password: {creds.password}")
        print(f"  Token:    {creds.token}")
        print(f"  Saved to: {settings.config_dir}/{CREDENTIALS_FILENAME}")


async def serve(settings: Settings) -> None:
    """Build the application and serve it until interrupted."""
    app = create_app(settings)
    config = Config(
        app=app,
        host=settings.address,
        port=int(settings.port),
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)

    # Print the banner once startup (and credential generation) is done.
    async def announce() -> None:
        while not server.started:
            if server.should_exit:
                return
            await asyncio.sleep(0.1)
        print_banner(app, settings)

    banner = asyncio.create_task(announce())
    try:
        await server.serve()
    finally:
        banner.cancel()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.version:
        print(f"citylist {__version__}")
        return 0

    settings = resolve_settings(args)
    setup_logging(settings.log_level, settings.logs_dir)

    if args.status:
        print_status(settings)
        return 0

    db_path = get_database_path(settings)
    init_db(db_path)
    port = select_port(settings.port, SettingsService(db_path, AuditService(db_path)))
    settings = replace(settings, port=str(port))

    try:
        asyncio.run(serve(settings))
    except (KeyboardInterrupt, SystemExit):
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
