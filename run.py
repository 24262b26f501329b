"""Single file entry point for the CityList API server.

Intended to be executed from the project root where only one Python
file can be specified (for example under Pterodactyl or Docker).  It
accepts the same flags as the ``citylist`` console script.

Usage:
    python run.py [--port PORT] [--data DIR] ...
"""
import sys

from citylist_api.cli import main


if __name__ == "__main__":
    sys.exit(main())
