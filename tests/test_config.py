"""Tests for settings."""

import pytest
from pydantic import ValidationError

from src.config import Settings


def test_cors_origins_default_to_all():
    assert Settings(allowed_origins=None).cors_origins == ["*"]
    assert Settings(allowed_origins="").cors_origins == ["*"]


def test_cors_origins_are_split_and_trimmed():
    settings = Settings(allowed_origins="https://a.example, https://b.example ,")
    assert settings.cors_origins == ["https://a.example", "https://b.example"]


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example")
    monkeypatch.setenv("PORT", "8080")

    settings = Settings()

    assert settings.cors_origins == ["https://a.example"]
    assert settings.port == 8080


def test_production_rejects_localhost_database():
    with pytest.raises(ValidationError):
        Settings(environment="production", database_url="postgresql://u:p@localhost/db")


def test_environment_flags():
    assert Settings(environment="development").is_development
    assert Settings(environment="production", database_url="postgresql://u:p@db/users").is_production
