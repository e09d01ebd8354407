"""
Application configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Backend store
    database_url: str = "sqlite+aiosqlite:///./opsconsole_dev.db"

    # Privileged service credential for identity administration.
    # Left empty, account provisioning refuses to run.
    service_role_key: str = ""

    # Security
    secret_key: str = "change-this-in-production-minimum-32-characters-long"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    # Mutation pipeline
    mutation_timeout_seconds: float = 30.0
    provisioning_rollback_on_profile_failure: bool = True
    temporary_password_length: int = 12

    # Audit log query surface
    audit_log_window: int = 200

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    # API Settings
    api_v1_prefix: str = "/api/v1"
    project_name: str = "Operations Console"
    version: str = "1.0.0"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
