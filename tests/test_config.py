"""Unit tests for configuration management."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from resourcedb.config import MEMORY_DATABASE, Environment, Settings


class TestEnvironment:
    def test_environment_values(self):
        assert Environment.DEVELOPMENT == "development"
        assert Environment.PRODUCTION == "production"
        assert Environment.TESTING == "testing"
        assert Environment.STAGING == "staging"


class TestSettings:
    """Tests for Settings class."""

    def test_database_path_defaults_under_data_dir(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "development")
        monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))

        settings = Settings()

        assert settings.data_dir == (tmp_path / "data").resolve()
        assert settings.data_dir.exists()
        assert settings.database_path == settings.data_dir / "resources.db"
        assert settings.database_url == f"sqlite:///{settings.database_path}"

    def test_explicit_database_path(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "development")
        monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "custom.db"))

        assert Settings().database_path == tmp_path / "custom.db"

    def test_testing_profile_uses_memory(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "testing")

        settings = Settings()

        assert settings.is_testing
        assert settings.database_path == MEMORY_DATABASE
        assert settings.is_memory_database
        assert settings.log_level == "ERROR"
        assert settings.log_file is None

    def test_production_profile(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("DATA_DIR", str(tmp_path))

        settings = Settings()

        assert settings.is_production
        assert settings.log_level == "INFO"
        assert settings.log_json is True

    def test_development_profile(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "development")

        settings = Settings()

        assert settings.is_development
        assert settings.log_level == "DEBUG"
        assert settings.log_json is False

    def test_log_file_when_enabled(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ENVIRONMENT", "staging")
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        monkeypatch.setenv("LOG_TO_FILE", "true")

        assert Settings().log_file == tmp_path.resolve() / "resourcedb.log"

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        with pytest.raises(ValidationError):
            Settings()

    @pytest.mark.parametrize("passes", ["0", "11"])
    def test_sanitize_passes_bounds(self, monkeypatch, passes):
        monkeypatch.setenv("SANITIZE_MAX_PASSES", passes)

        with pytest.raises(ValidationError):
            Settings()

    def test_invalid_environment(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "moon")

        with pytest.raises(ValidationError):
            Settings()
