"""Configuration using pydantic-settings.

Values come from environment variables prefixed with ``SHEETDIFF_`` or from
a ``.env`` file. Command-line flags override them where the CLI offers one.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings shared by the CLI and the web service.

    Environment variables:
    - SHEETDIFF_ACCESS_TOKEN: OAuth2 token with spreadsheets.readonly scope
    - SHEETDIFF_FIXTURES_DIR: Read spreadsheets from local JSON fixtures instead
    - SHEETDIFF_ENVIRONMENT: development, staging or production
    """

    model_config = SettingsConfigDict(
        env_prefix="SHEETDIFF_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    host: str = "127.0.0.1"
    port: int = 8002
    environment: str = "development"
    log_level: str = "INFO"
    rate_limit: str = "30/minute"

    # Document source
    access_token: str = ""
    fixtures_dir: Path | None = None
    request_timeout: int = 60

    # Comparison
    max_workers: int = 8
    diff_timeout: float = 0.0

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is a known value."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of: {allowed}")
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError("port must be between 1 and 65535")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known value."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of: {allowed}")
        return v_upper

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_workers must be at least 1")
        return v

    @field_validator("diff_timeout")
    @classmethod
    def validate_diff_timeout(cls, v: float) -> float:
        if v < 0:
            raise ValueError("diff_timeout must not be negative")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded once and cached for the lifetime of the process.
    """
    return Settings()
