"""
Configuration management for the Cocktail Catalog.

This module handles:
- Database path and URL configuration
- Environment-specific configuration (development vs. production)
- Database connection settings read from environment variables
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .constants import (
    APP_NAME,
    APP_VERSION,
    DATABASE_FILENAME,
)

logger = logging.getLogger(__name__)

ENV_ENVIRONMENT = "COCKTAILDB_ENV"
ENV_DATABASE_URL = "COCKTAILDB_DATABASE_URL"
ENV_DB_TIMEOUT = "COCKTAILDB_DB_TIMEOUT"
ENV_SQL_ECHO = "COCKTAILDB_SQL_ECHO"

DEFAULT_DB_TIMEOUT = 30


class Config:
    """
    Application configuration manager.

    Handles database location, environment mode and connection settings.
    """

    def __init__(self, environment: str = "production"):
        """
        Initialize configuration.

        Args:
            environment: Environment mode - 'production' or 'development'
        """
        self.environment = environment
        self._app_name = APP_NAME
        self._app_version = APP_VERSION

        if environment == "development":
            self._base_dir = self._get_project_data_dir()
        else:
            self._base_dir = self._get_user_documents_dir()

        self._database_dir = self._base_dir
        self._database_path = self._database_dir / DATABASE_FILENAME
        self._database_url_override = os.environ.get(ENV_DATABASE_URL) or None

    def _get_project_data_dir(self) -> Path:
        """Project data/ directory used in development."""
        project_root = Path(__file__).parent.parent.parent.parent
        return project_root / "data"

    def _get_user_documents_dir(self) -> Path:
        """App subdirectory of the user's Documents folder used in production."""
        return Path.home() / "Documents" / "CocktailDB"

    def ensure_directories(self) -> None:
        """Create the database directory if it doesn't exist."""
        self._database_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _int_from_env(name: str, default: int) -> int:
        raw = os.environ.get(name)
        if raw is None or raw == "":
            return default
        try:
            value = int(raw)
        except ValueError:
            logger.warning(f"Invalid {name}={raw!r}; using default {default}")
            return default
        if value <= 0:
            logger.warning(f"Invalid {name}={raw!r}; must be positive, using default {default}")
            return default
        return value

    @property
    def app_name(self) -> str:
        """Application name."""
        return self._app_name

    @property
    def app_version(self) -> str:
        """Application version."""
        return self._app_version

    @property
    def database_path(self) -> Path:
        """Full path to the database file."""
        return self._database_path

    @property
    def database_url(self) -> str:
        """
        SQLAlchemy database URL.

        COCKTAILDB_DATABASE_URL wins over the file location derived from
        the environment.
        """
        if self._database_url_override:
            return self._database_url_override
        db_path_str = str(self._database_path).replace("\\", "/")
        return f"sqlite:///{db_path_str}"

    @property
    def has_database_url_override(self) -> bool:
        """True when COCKTAILDB_DATABASE_URL replaces the default database file."""
        return bool(self._database_url_override)

    @property
    def db_timeout(self) -> int:
        """SQLite busy timeout in seconds."""
        return self._int_from_env(ENV_DB_TIMEOUT, DEFAULT_DB_TIMEOUT)

    @property
    def sql_echo(self) -> bool:
        """Whether SQLAlchemy should log every statement."""
        return os.environ.get(ENV_SQL_ECHO, "").strip().lower() in ("1", "true", "yes", "on")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def database_exists(self) -> bool:
        """
        Check if database file exists.

        Returns:
            True if database file exists, False otherwise
        """
        return self._database_path.exists()

    def __repr__(self) -> str:
        """String representation of config."""
        return f"Config(environment='{self.environment}', database_url='{self.database_url}')"


# Global configuration instance
_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Once created, the singleton's environment cannot be changed by passing
    a different environment argument.

    Args:
        environment: Optional environment for initial creation. If None, uses
                    COCKTAILDB_ENV or defaults to production. Ignored if
                    singleton already exists.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get(ENV_ENVIRONMENT, "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        logger.warning(
            f"get_config() called with environment='{environment}' but singleton "
            f"already exists with environment='{_config_instance.environment}'. "
            f"Returning existing singleton to prevent database switching."
        )

    return _config_instance


def reset_config():
    """
    Reset the global configuration instance.

    Useful for testing.
    """
    global _config_instance
    _config_instance = None


def get_database_url() -> str:
    """Get the database URL."""
    return get_config().database_url
