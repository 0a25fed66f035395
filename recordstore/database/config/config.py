"""
Configuration: Pydantic v2 Settings (env / .env)
=================================================

Purpose
-------
Centralized, strongly-typed database configuration using:
- Pydantic v2 `BaseSettings` for environment-driven values
- `pydantic-settings` v2 for `.env` loading and model config

Load Order & Behavior
---------------------
- Values are read from the environment; if not present, `.env` is used.
- Every field has a default that points at a local SQLite file, so the
  package can be imported without any environment at all.
- `extra="ignore"`: unknown env vars are ignored (not an error).

Usage
-----
from recordstore.database.config.config import settings

# Example
db_host = settings.DB_HOST
echo_sql = settings.DB_ECHO

Security
--------
- Never commit secrets or the `.env` file to source control.
- Prefer runtime environment variables in production (K8s/Secrets Manager/etc.).
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Database configuration settings loaded from environment variables
    or a `.env` file. Provides strongly typed access to environment values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    DB_DRIVER_NAME: str = Field("sqlite", description="SQLAlchemy driver name (e.g., `postgresql+psycopg`, `mysql`, `sqlite`).")
    DB_USERNAME: Optional[str] = Field(None, description="Database username credential.")
    DB_PASSWORD: Optional[str] = Field(None, description="Database password credential.")
    DB_HOST: Optional[str] = Field(None, description="Hostname or IP address of the database server.")
    DB_PORT: Optional[int] = Field(None, description="Port of the database server.")
    DB_DATABASE_NAME: str = Field("recordstore.db", description="Name of the database (file path for SQLite).")
    DB_ECHO: bool = Field(False, description="Log every emitted SQL statement through the `sqlalchemy.engine` logger.")
    DB_POOL_PRE_PING: bool = Field(True, description="Test pooled connections for liveness before handing them out.")


# Singleton instance of Settings, ready to be imported across the package
settings = Settings()
"""Defines a Settings object that contains the contents of the environment / .env file"""
