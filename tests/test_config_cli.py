"""
Settings validation and command-line flag mapping.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from webp_proxy import cli
from webp_proxy.core.config import Settings


def test_defaults(monkeypatch):
    """Defaults match the original server's flags"""
    for name in ("QUALITY", "CACHE_DIR", "CACHE_CLEAR_KEY", "SOURCE_ROOT", "PORT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.QUALITY == 90
    assert settings.CACHE_DIR == Path("./cache")
    assert settings.CACHE_CLEAR_KEY == "defaultKey"
    assert settings.uses_default_clear_key
    assert settings.PORT == 8080


def test_environment_overrides(monkeypatch):
    """Environment variables override defaults"""
    monkeypatch.setenv("QUALITY", "75")
    monkeypatch.setenv("CACHE_CLEAR_KEY", "from-env")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings(_env_file=None)

    assert settings.QUALITY == 75
    assert settings.CACHE_CLEAR_KEY == "from-env"
    assert settings.LOG_LEVEL == "DEBUG"
    assert not settings.uses_default_clear_key


@pytest.mark.parametrize("quality", [-1, 101])
def test_quality_out_of_range(quality):
    """Quality outside 0-100 is rejected"""
    with pytest.raises(ValidationError):
        Settings(_env_file=None, QUALITY=quality)


def test_settings_are_immutable():
    """Settings can't change after construction"""
    settings = Settings(_env_file=None)
    with pytest.raises(ValidationError):
        settings.QUALITY = 10


def test_flags_override_settings(monkeypatch, tmp_path):
    """Command-line flags map onto settings fields"""
    monkeypatch.delenv("QUALITY", raising=False)
    args = cli.build_parser().parse_args(
        ["--quality", "60", "--cache", str(tmp_path / "c"), "--cachekey", "k", "--port", "9000"]
    )

    settings = cli.build_settings(args)

    assert settings.QUALITY == 60
    assert settings.CACHE_DIR == tmp_path / "c"
    assert settings.CACHE_CLEAR_KEY == "k"
    assert settings.PORT == 9000


@pytest.mark.parametrize("value", ["150", "-3", "high"])
def test_invalid_quality_flag_exits(value):
    """A bad --quality value is a usage error"""
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["--quality", value])


def test_main_runs_uvicorn(monkeypatch, tmp_path):
    """main builds the app and hands it to uvicorn"""
    calls = []
    monkeypatch.setattr(cli.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    cli.main(["--cache", str(tmp_path / "cache"), "--host", "127.0.0.1", "--port", "8123", "--log-level", "warning"])

    assert len(calls) == 1
    app, kwargs = calls[0]
    assert kwargs == {"host": "127.0.0.1", "port": 8123, "log_level": "warning"}
    assert app.state.settings.CACHE_DIR == tmp_path / "cache"


def test_startup_creates_cache_dir(settings, cache_dir):
    """App startup creates the cache root"""
    from fastapi.testclient import TestClient

    from webp_proxy.main import create_app

    assert not cache_dir.exists()
    with TestClient(create_app(settings)):
        assert cache_dir.is_dir()
