"""Configuration Manager for Secure Credential Handling.

This module provides a configuration manager for the data store settings
(hosted Supabase project or embedded DuckDB file) and other sensitive
configuration data.

Security Impact:
    - The Supabase API key is held as SecretStr and never logged
    - Configuration is validated before any client is created
    - Prevents credential leakage in error messages and reprs

Architecture:
    - Infrastructure layer isolated from the domain
    - Supports environment variables (with optional .env file) and JSON files
    - Type-safe configuration using Pydantic models
    - Fail-fast validation prevents runtime errors
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("supabase", "duckdb")


class StoreConfig(BaseModel):
    """Data store configuration with secure credential handling.

    Parameters:
        backend: Store backend ("supabase" or "duckdb")
        supabase_url: Project URL (https://<ref>.supabase.co)
        supabase_key: Anon or service key (SecretStr - never logged)
        db_path: DuckDB file path, or ":memory:"
    """

    backend: str = Field(default="duckdb", description="Store backend (supabase, duckdb)")
    supabase_url: Optional[str] = Field(None, description="Supabase project URL")
    supabase_key: Optional[SecretStr] = Field(None, description="Supabase API key (secret)")
    db_path: Optional[str] = Field(None, description="Path to DuckDB database file")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate store backend."""
        if v.lower() not in SUPPORTED_BACKENDS:
            raise ValueError(f"Unsupported store backend: {v}. Supported: {list(SUPPORTED_BACKENDS)}")
        return v.lower()

    @field_validator("db_path")
    @classmethod
    def validate_db_path(cls, v: Optional[str]) -> Optional[str]:
        """Validate the database directory exists (the file may not exist yet)."""
        if v is None or v == ":memory:":
            return v

        db_path_obj = Path(v)
        if not db_path_obj.parent.exists():
            raise ValueError(f"Database directory does not exist: {db_path_obj.parent}")

        return str(db_path_obj)

    @field_validator("supabase_url")
    @classmethod
    def validate_supabase_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not v.startswith(("https://", "http://")):
            raise ValueError("supabase_url must be an http(s) URL")
        return v.rstrip("/")

    @model_validator(mode="after")
    def require_backend_settings(self) -> 'StoreConfig':
        """Require URL and key for the hosted backend."""
        if self.backend == "supabase" and not (self.supabase_url and self.supabase_key):
            raise ValueError("supabase backend requires supabase_url and supabase_key")
        return self

    def get_supabase_key(self) -> str:
        """Return the API key.

        Security Impact:
            - Key is retrieved from SecretStr but not logged
        """
        if self.supabase_key is None:
            raise ValueError("supabase_key is not configured")
        return self.supabase_key.get_secret_value()


class ConfigManager:
    """Configuration manager for store credentials and settings.

    Example Usage:
        ```python
        # Load from environment variables
        config = ConfigManager.from_environment()
        store_config = config.get_store_config()

        # Load from file
        config = ConfigManager.from_file("config.json")
        store_config = config.get_store_config()
        ```
    """

    def __init__(self, config_data: Dict[str, Any]):
        self._config_data = config_data
        self._store_config: Optional[StoreConfig] = None

    @classmethod
    def from_environment(cls, env_file: Optional[Path] = None) -> 'ConfigManager':
        """Load configuration from environment variables.

        Environment Variables:
            - CLINIC_STORE_BACKEND: Store backend (supabase, duckdb)
            - CLINIC_SUPABASE_URL: Supabase project URL
            - CLINIC_SUPABASE_KEY: Supabase API key (secret)
            - CLINIC_DB_PATH: Path to DuckDB database file

        Parameters:
            env_file: .env file to load first (defaults to the project root .env)

        Returns:
            ConfigManager instance
        """
        env_path = env_file or Path(__file__).parent.parent.parent / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            logger.debug(f"Loaded environment variables from {env_path}")

        config_data = {
            "store": {
                "backend": os.getenv("CLINIC_STORE_BACKEND", "duckdb"),
                "supabase_url": os.getenv("CLINIC_SUPABASE_URL"),
                "supabase_key": os.getenv("CLINIC_SUPABASE_KEY"),
                "db_path": os.getenv("CLINIC_DB_PATH"),
            }
        }

        return cls(config_data)

    @classmethod
    def from_file(cls, config_path: str) -> 'ConfigManager':
        """Load configuration from a JSON file.

        Parameters:
            config_path: Path to configuration file

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        # Credential files should not be group/world readable
        stat_info = config_file.stat()
        if stat_info.st_mode & 0o077 != 0:
            logger.warning(
                f"Configuration file has overly permissive permissions: {config_path}. "
                "Consider setting to 600 for credential files."
            )

        try:
            with open(config_file, 'r', encoding="utf-8") as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {str(e)}")

        return cls(config_data)

    def get_store_config(self) -> StoreConfig:
        """Get the validated store configuration."""
        if self._store_config is None:
            store_data = dict(self._config_data.get("store", {}))
            if store_data.get("backend") is None:
                store_data.pop("backend", None)
            self._store_config = StoreConfig(**store_data)

        return self._store_config

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key.

        Parameters:
            key: Configuration key (supports dot notation, e.g., "store.backend")
            default: Default value if key not found
        """
        keys = key.split(".")
        value = self._config_data

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

        return value if value is not None else default


def get_store_config() -> StoreConfig:
    """Convenience function to get store configuration from environment.

    Defaults to an in-memory DuckDB store when nothing is configured.
    """
    return ConfigManager.from_environment().get_store_config()
