"""Tests for configuration."""

import pytest
from pydantic import ValidationError

from vecsearch.config import Settings, get_settings


def test_settings_defaults():
    """Test that settings have correct default values."""
    settings = Settings()
    assert settings.app_name == "Vecsearch API"
    assert settings.app_version == "0.1.0"
    assert settings.environment in ["development", "staging", "production"]
    assert settings.api_v1_prefix == "/api/v1"
    assert settings.search_dialect == 2
    assert settings.vector_distance_metric == "COSINE"


def test_get_settings_returns_singleton():
    """Test that get_settings returns the same instance."""
    settings1 = get_settings()
    settings2 = get_settings()
    assert settings1 is settings2


def test_settings_cors_configuration():
    """Test CORS configuration defaults."""
    settings = Settings()
    assert settings.cors_origins == ["*"]
    assert settings.cors_credentials is True
    assert settings.cors_methods == ["*"]
    assert settings.cors_headers == ["*"]


def test_behaviour_flags_default_to_lenient():
    settings = Settings()
    assert settings.sanitize_text is False
    assert settings.strict_numeric is False


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("REDIS_URL", "redis://cache:6380/2")
    monkeypatch.setenv("EMBEDDING_DIMENSION", "384")
    monkeypatch.setenv("STRICT_NUMERIC", "true")

    settings = Settings()

    assert settings.redis_url == "redis://cache:6380/2"
    assert settings.embedding_dimension == 384
    assert settings.strict_numeric is True


def test_settings_are_frozen():
    settings = Settings()
    with pytest.raises(ValidationError):
        settings.redis_url = "redis://elsewhere"  # type: ignore[misc]


def test_unknown_distance_metric_is_rejected():
    with pytest.raises(ValidationError):
        Settings(vector_distance_metric="IP")  # type: ignore[arg-type]
