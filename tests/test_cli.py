import pytest

from citylist_api import __version__
from citylist_api.app.core.config import Settings
from citylist_api.app.core.network import format_url, get_accessible_url
from citylist_api.app.core.paths import get_default_dirs, resolve_directories
from citylist_api.cli import (
    RANDOM_PORT_MAX,
    RANDOM_PORT_MIN,
    build_parser,
    main,
    resolve_settings,
    select_port,
)


def test_version(capsys):
    assert main(["--version"]) == 0
    assert __version__ in capsys.readouterr().out


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.port == ""
    assert args.config == ""
    assert args.dev is False


def test_resolve_settings_flags_win(tmp_path):
    base = Settings(config_dir=str(tmp_path / "env-config"), port="9000", address="::")
    args = build_parser().parse_args(
        ["--config", str(tmp_path / "c"), "--data", str(tmp_path / "d"), "--logs", str(tmp_path / "l"), "--port", "8123"]
    )
    settings = resolve_settings(args, base)
    assert settings.config_dir == str(tmp_path / "c")
    assert settings.data_dir == str(tmp_path / "d")
    assert settings.port == "8123"
    assert settings.address == "::"
    assert (tmp_path / "l").is_dir()


def test_resolve_settings_falls_back_to_environment(tmp_path):
    base = Settings(config_dir=str(tmp_path / "env-config"), data_dir=str(tmp_path / "env-data"), logs_dir=str(tmp_path / "env-logs"), port="9000")
    settings = resolve_settings(build_parser().parse_args(["--dev"]), base)
    assert settings.config_dir == str(tmp_path / "env-config")
    assert settings.port == "9000"
    assert settings.dev_mode is True
    assert settings.log_level == "DEBUG"


def test_select_port_priority(settings_service):
    assert select_port("8123", settings_service) == 8123
    assert settings_service.get_value("server.http_port", "") == "8123"
    # Stored value is reused when no port is requested.
    assert select_port("", settings_service) == 8123


def test_select_port_random(settings_service):
    port = select_port("", settings_service)
    assert RANDOM_PORT_MIN <= port <= RANDOM_PORT_MAX
    assert settings_service.get_value("server.http_port", "") == str(port)


@pytest.mark.parametrize("requested", ["http", "70000", "-1"])
def test_select_port_invalid(settings_service, requested):
    with pytest.raises(SystemExit):
        select_port(requested, settings_service)


def test_status(tmp_path, capsys):
    args = ["--status", "--config", str(tmp_path / "c"), "--data", str(tmp_path / "d"), "--logs", str(tmp_path / "l")]
    assert main(args) == 0
    out = capsys.readouterr().out
    assert str(tmp_path / "d") in out
    assert "Cities:      0" in out
    assert "Admin setup: no" in out


def test_format_url_brackets_ipv6():
    assert format_url("192.0.2.1", "80", "/admin") == "http://192.0.2.1:80/admin"
    assert format_url("2001:db8::1", "64123") == "http://[2001:db8::1]:64123"
    assert format_url("[2001:db8::1]", "64123") == "http://[2001:db8::1]:64123"


def test_accessible_url_uses_explicit_address():
    assert get_accessible_url("198.51.100.7", "64000", "/api/v1") == "http://198.51.100.7:64000/api/v1"


def test_accessible_url_never_localhost(monkeypatch):
    monkeypatch.setattr("citylist_api.app.core.network.socket.gethostname", lambda: "localhost")
    monkeypatch.setattr("citylist_api.app.core.network.get_outbound_ip", lambda: None)
    assert get_accessible_url("0.0.0.0", "64000") == "http://<your-host>:64000"


def test_default_dirs_are_distinct():
    config_dir, data_dir, logs_dir = get_default_dirs()
    assert len({config_dir, data_dir, logs_dir}) == 3
    assert all("citylist" in path for path in (config_dir, data_dir, logs_dir))


def test_resolve_directories_creates(tmp_path):
    dirs = resolve_directories(str(tmp_path / "a"), str(tmp_path / "b"), str(tmp_path / "c"))
    assert dirs == (str(tmp_path / "a"), str(tmp_path / "b"), str(tmp_path / "c"))
    assert all((tmp_path / name).is_dir() for name in "abc")
