"""Unit tests for Config class configuration properties.

Each property is tested for:
- Default values when no environment variables set
- Environment variable overrides
- Invalid value handling (fallback to defaults with warning)
"""

import logging
from pathlib import Path

from cocktaildb.utils.config import Config, get_config, get_database_url, reset_config


class TestDatabaseConfigProperties:
    """Tests for database configuration properties."""

    def setup_method(self):
        """Reset config singleton before each test."""
        reset_config()

    def teardown_method(self):
        """Clean up after each test."""
        reset_config()

    def test_db_timeout_default(self, monkeypatch):
        """Default db_timeout is 30."""
        monkeypatch.delenv("COCKTAILDB_DB_TIMEOUT", raising=False)
        config = Config()
        assert config.db_timeout == 30

    def test_db_timeout_env_override(self, monkeypatch):
        """db_timeout can be overridden via environment variable."""
        monkeypatch.setenv("COCKTAILDB_DB_TIMEOUT", "60")
        config = Config()
        assert config.db_timeout == 60

    def test_db_timeout_invalid_uses_default(self, monkeypatch, caplog):
        """Invalid db_timeout falls back to default with warning."""
        monkeypatch.setenv("COCKTAILDB_DB_TIMEOUT", "invalid")
        with caplog.at_level(logging.WARNING):
            config = Config()
            assert config.db_timeout == 30
        assert "Invalid COCKTAILDB_DB_TIMEOUT" in caplog.text

    def test_db_timeout_non_positive_uses_default(self, monkeypatch, caplog):
        """Zero or negative db_timeout falls back to default with warning."""
        monkeypatch.setenv("COCKTAILDB_DB_TIMEOUT", "0")
        with caplog.at_level(logging.WARNING):
            assert Config().db_timeout == 30
        assert "Invalid COCKTAILDB_DB_TIMEOUT" in caplog.text

    def test_sql_echo(self, monkeypatch):
        """sql_echo is off by default and accepts common truthy values."""
        monkeypatch.delenv("COCKTAILDB_SQL_ECHO", raising=False)
        assert Config().sql_echo is False
        monkeypatch.setenv("COCKTAILDB_SQL_ECHO", "True")
        assert Config().sql_echo is True


class TestDatabaseLocation:
    """Tests for database path and URL resolution."""

    def setup_method(self):
        reset_config()

    def teardown_method(self):
        reset_config()

    def test_production_uses_documents_dir(self, monkeypatch):
        monkeypatch.delenv("COCKTAILDB_DATABASE_URL", raising=False)
        config = Config("production")
        assert config.is_production
        assert config.database_path == Path.home() / "Documents" / "CocktailDB" / "cocktaildb.db"
        assert config.database_url.startswith("sqlite:///")

    def test_development_uses_project_data_dir(self):
        config = Config("development")
        assert config.is_development
        assert config.database_path.parent.name == "data"

    def test_database_url_override(self, monkeypatch):
        monkeypatch.setenv("COCKTAILDB_DATABASE_URL", "sqlite:///:memory:")
        assert Config().database_url == "sqlite:///:memory:"

    def test_get_config_reads_environment(self, monkeypatch):
        monkeypatch.setenv("COCKTAILDB_ENV", "development")
        assert get_config().is_development

    def test_get_config_singleton_keeps_environment(self, caplog):
        first = get_config("development")
        with caplog.at_level(logging.WARNING):
            second = get_config("production")
        assert second is first
        assert second.is_development
        assert "singleton" in caplog.text

    def test_get_database_url(self, monkeypatch):
        monkeypatch.setenv("COCKTAILDB_DATABASE_URL", "sqlite:////tmp/bar.db")
        assert get_database_url() == "sqlite:////tmp/bar.db"

    def test_app_metadata(self):
        config = Config()
        assert config.app_name == "Cocktail Catalog"
        assert config.app_version
        assert "Config(environment='production'" in repr(config)
