"""
Operating system specific default directories.

Privileged processes (root on POSIX, the machine account on Windows)
use system wide locations; regular users get per-user locations that
follow the XDG base directory layout on Linux and BSD.
"""

import os
import sys
from pathlib import Path
from typing import Tuple


PROJECT_NAME = "citylist"


def _is_privileged() -> bool:
    if sys.platform == "win32":
        return os.getenv("USERDOMAIN") == os.getenv("COMPUTERNAME")
    return os.geteuid() == 0


def get_default_dirs(project_name: str = PROJECT_NAME) -> Tuple[str, str, str]:
    """Return ``(config_dir, data_dir, logs_dir)`` defaults for this OS."""
    if _is_privileged():
        if sys.platform == "win32":
            base = Path(os.getenv("ProgramData") or "C:\\ProgramData") / project_name
            config_dir, data_dir, logs_dir = base / "config", base / "data", base / "logs"
        elif sys.platform == "darwin":
            support = Path("/Library/Application Support") / project_name
            config_dir, data_dir, logs_dir = support, support / "data", Path("/Library/Logs") / project_name
        else:
            config_dir = Path("/etc") / project_name
            data_dir = Path("/var/lib") / project_name
            logs_dir = Path("/var/log") / project_name
        return str(config_dir), str(data_dir), str(logs_dir)

    home = Path.home()
    if sys.platform == "win32":
        app_data = Path(os.getenv("APPDATA") or home / "AppData" / "Roaming")
        local_app_data = Path(os.getenv("LOCALAPPDATA") or home / "AppData" / "Local")
        config_dir = app_data / project_name
        data_dir = local_app_data / project_name
        logs_dir = local_app_data / project_name / "logs"
    elif sys.platform == "darwin":
        support = home / "Library" / "Application Support" / project_name
        config_dir, data_dir = support, support / "data"
        logs_dir = home / "Library" / "Logs" / project_name
    else:
        config_dir = Path(os.getenv("XDG_CONFIG_HOME") or home / ".config") / project_name
        data_dir = Path(os.getenv("XDG_DATA_HOME") or home / ".local" / "share") / project_name
        logs_dir = Path(os.getenv("XDG_STATE_HOME") or home / ".local" / "state") / project_name
    return str(config_dir), str(data_dir), str(logs_dir)


def resolve_directories(config_dir: str = "", data_dir: str = "", logs_dir: str = "") -> Tuple[str, str, str]:
    """Fill empty directory values with OS defaults and create all three."""
    default_config, default_data, default_logs = get_default_dirs()
    resolved = (config_dir or default_config, data_dir or default_data, logs_dir or default_logs)
    for directory in resolved:
        Path(directory).mkdir(parents=True, exist_ok=True)
    return resolved
