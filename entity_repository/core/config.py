"""
Centralized configuration management using Pydantic Settings.

Loads settings from environment variables and .env files with validation.
"""

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables
    (e.g. DATABASE_URL, LOG_LEVEL, DEFAULT_PAGE_SIZE).
    """

    # Database Configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/entity_repository.db",
        description="Async database connection URL"
    )
    database_echo: bool = Field(
        default=False,
        description="Echo emitted SQL through the sqlalchemy.engine logger"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Root log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_json: bool = Field(
        default=True,
        description="Emit logs as single-line JSON objects"
    )

    # Pagination defaults for HTTP list endpoints
    default_page_size: int = Field(
        default=50,
        ge=1,
        description="Page size used when a request does not specify one"
    )
    max_page_size: int = Field(
        default=500,
        ge=1,
        description="Upper bound accepted for the page_size query parameter"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """
        Validate database URL format.

        Only async-capable schemes the engine factory knows how to configure
        are accepted.
        """
        if not v or v.strip() == "":
            raise ValueError("DATABASE_URL is required and cannot be empty")

        valid_schemes = ["sqlite", "sqlite+aiosqlite", "postgresql", "postgresql+asyncpg"]
        if not any(v.startswith(scheme + "://") for scheme in valid_schemes):
            raise ValueError(
                f"DATABASE_URL must start with one of: {', '.join(valid_schemes)}. "
                f"Got: {v[:20]}..."
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"LOG_LEVEL must be a standard logging level, got: {v}")
        return level

    @model_validator(mode="after")
    def validate_page_sizes(self) -> "Settings":
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                f"DEFAULT_PAGE_SIZE ({self.default_page_size}) cannot exceed "
                f"MAX_PAGE_SIZE ({self.max_page_size})"
            )
        return self


# Global settings instance
settings = Settings()
