"""Unit tests for core/config.py -- SECRET_KEY policy and environment overrides."""

import pytest
from pydantic import ValidationError

from core.config import Settings

STRONG_KEY = "k" * 32


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("SECRET_KEY", "JWT_SECRET", "DEBUG", "PORT", "CORS_ALLOWED_ORIGINS", "TOKEN_EXPIRE_SECONDS"):
        monkeypatch.delenv(name, raising=False)


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


def test_production_requires_secret_key():
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        _settings(debug=False)


def test_debug_generates_secret_key():
    s = _settings(debug=True)
    assert len(s.secret_key) >= 32


def test_short_secret_key_rejected_even_in_debug():
    with pytest.raises(ValidationError, match="at least 32"):
        _settings(debug=True, secret_key="short")


def test_secret_key_from_env(monkeypatch):
    monkeypatch.setenv("SECRET_KEY", STRONG_KEY)
    assert _settings().secret_key == STRONG_KEY


def test_jwt_secret_alias(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", STRONG_KEY)
    assert _settings().secret_key == STRONG_KEY


def test_defaults():
    s = _settings(secret_key=STRONG_KEY)
    assert s.port == 3000
    assert s.token_expire_seconds == 24 * 60 * 60
    assert "http://localhost:5173" in s.cors_allowed_origins
    assert s.database_url.startswith("sqlite:///")


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "8000")
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", '["https://tripmate.example"]')
    s = _settings(secret_key=STRONG_KEY)
    assert s.port == 8000
    assert s.cors_allowed_origins == ["https://tripmate.example"]
