"""Unit tests for engine settings."""

import pytest
from pydantic import ValidationError

from rowlogic.core.config import Settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch):
        """Test default engine limits."""
        monkeypatch.delenv("FORMULA_MAX_DEPTH", raising=False)
        settings = Settings(_env_file=None)
        assert settings.formula_max_depth == 64
        assert settings.formula_max_length == 10_000
        assert settings.date_only_format == "YYYY-MM-DD"

    def test_environment_override(self, monkeypatch):
        """Test limits load from environment variables."""
        monkeypatch.setenv("FORMULA_MAX_DEPTH", "16")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        settings = Settings(_env_file=None)
        assert settings.formula_max_depth == 16
        assert settings.log_level == "DEBUG"

    def test_known_keys(self):
        """Test settings only carry keys the engine reads."""
        assert set(Settings.model_fields) == {
            "log_level",
            "json_logs",
            "formula_max_depth",
            "formula_max_length",
            "date_only_format",
        }

    def test_invalid_log_level(self):
        """Test unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="chatty")

    def test_limits_must_be_positive(self):
        """Test formula limits below one are rejected."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, formula_max_depth=0)
