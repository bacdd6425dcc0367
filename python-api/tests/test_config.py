"""
Tests for configuration module.

Tests for:
- Environment variable loading
- Configuration validation with Pydantic
- Default values
"""

import pytest
from pydantic import ValidationError


def test_config_loads_environment_variables(mock_env):
    """
    Test that configuration loads from environment variables.
    """
    from config import Settings

    settings = Settings()

    assert settings.ENVIRONMENT == "test"
    assert settings.LOG_LEVEL == "INFO"
    assert settings.API_VERSION == "v1"


def test_config_has_rate_limit_defaults(monkeypatch):
    """
    Test the fixed-window limits: 100 per IP, 5 on auth, 500 per user.
    """
    for name in (
        "RATE_LIMIT_WINDOW_SECONDS",
        "RATE_LIMIT_MAX_REQUESTS",
        "AUTH_RATE_LIMIT_MAX_REQUESTS",
        "USER_RATE_LIMIT_MAX_REQUESTS",
    ):
        monkeypatch.delenv(name, raising=False)

    from config import Settings

    settings = Settings()

    assert settings.RATE_LIMIT_WINDOW_SECONDS == 900
    assert settings.RATE_LIMIT_MAX_REQUESTS == 100
    assert settings.AUTH_RATE_LIMIT_MAX_REQUESTS == 5
    assert settings.USER_RATE_LIMIT_MAX_REQUESTS == 500
    assert settings.NOTIFICATION_TTL_DAYS == 30


def test_config_cors_origins_is_list(mock_env):
    """
    Test that ALLOWED_ORIGINS is split into a list.
    """
    from config import Settings

    settings = Settings()

    assert settings.cors_origins == ["http://localhost:3000", "http://localhost:5173"]


def test_config_cors_origins_ignores_blanks(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example.com, ,https://b.example.com,")

    from config import Settings

    assert Settings().cors_origins == ["https://a.example.com", "https://b.example.com"]


def test_config_normalizes_log_level(monkeypatch):
    """
    Test that log levels are accepted case-insensitively.
    """
    monkeypatch.setenv("LOG_LEVEL", "debug")

    from config import Settings

    assert Settings().LOG_LEVEL == "DEBUG"


def test_config_rejects_unknown_log_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "LOUD")

    from config import Settings

    with pytest.raises(ValidationError):
        Settings()
