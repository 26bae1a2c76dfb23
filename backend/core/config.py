"""
Application configuration management.

Settings are read from environment variables (or a local .env file) so that
deployments can tune the analytics backend without code changes.
"""

from typing import List, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Analytics-specific thresholds live in
    ``modules.analytics.config.analytics_config``; this class only carries
    values shared by the whole backend.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    app_name: str = "AuraConnect BI Analytics"
    app_version: str = "1.0.0"

    # Environment Settings
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # API
    cors_origins: Union[List[str], str] = ["http://localhost:3000"]

    # Upper bound on raw records accepted in a single analysis request
    max_records_per_request: int = 100000

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Returns:
        Settings instance with environment variables loaded
    """
    return Settings()


# Export settings instance for easy import
settings = get_settings()


def validate_production_config(current: Settings = None):
    """Validate configuration for production deployment."""
    current = current or settings
    if not current.is_production:
        return

    issues = []
    if current.debug:
        issues.append("DEBUG is enabled in production")
    if "*" in current.cors_origins:
        issues.append("CORS allows every origin")

    if issues:
        raise ValueError(f"Production configuration issues detected: {', '.join(issues)}")


# Validate on import if in production
if settings.is_production:
    validate_production_config()
