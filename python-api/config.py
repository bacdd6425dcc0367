"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables with validation
and type checking.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type coercion.
    Reads from .env file if present.
    """

    # Application settings
    ENVIRONMENT: str = Field(default="development", description="Runtime environment")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    API_VERSION: str = Field(default="v1", description="API version prefix")
    CLIENT_URL: str = Field(
        default="http://localhost:5173", description="Frontend base URL for action links"
    )

    # CORS settings
    ALLOWED_ORIGINS: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )

    # Server settings
    HOST: str = Field(default="0.0.0.0", description="Server host")
    PORT: int = Field(default=8000, description="Server port")

    # ZeroDB Settings
    ZERODB_API_KEY: str = Field(default="", description="ZeroDB API key")
    ZERODB_PROJECT_ID: str = Field(default="", description="ZeroDB project ID")
    ZERODB_BASE_URL: str = Field(
        default="https://api.ainative.studio", description="ZeroDB API base URL"
    )
    ZERODB_TIMEOUT: float = Field(default=30.0, description="ZeroDB request timeout")

    # Auth settings
    JWT_SECRET: str = Field(default="change-me-in-production", description="JWT signing secret")
    JWT_ALGORITHM: str = Field(default="HS256", description="JWT signing algorithm")
    JWT_EXPIRE_MINUTES: int = Field(
        default=60 * 24 * 7, description="Access token lifetime in minutes"
    )

    # Key-value store (empty means in-process stores)
    REDIS_URL: str = Field(default="", description="Redis connection URL")

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = Field(default=True, description="Enable rate limiting")
    RATE_LIMIT_WINDOW_SECONDS: int = Field(default=900, description="Fixed window length")
    RATE_LIMIT_MAX_REQUESTS: int = Field(default=100, description="Requests per window per IP")
    AUTH_RATE_LIMIT_MAX_REQUESTS: int = Field(
        default=5, description="Requests per window per IP on /api/auth"
    )
    USER_RATE_LIMIT_MAX_REQUESTS: int = Field(
        default=500, description="Requests per window per authenticated user"
    )

    # Notifications
    NOTIFICATION_TTL_DAYS: int = Field(default=30, description="Days before notifications expire")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields in .env
    )

    @property
    def cors_origins(self) -> list[str]:
        """ALLOWED_ORIGINS split into a list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate log level is one of the standard Python logging levels.

        Args:
            v: Log level string

        Returns:
            Uppercase log level string

        Raises:
            ValueError: If log level is invalid
        """
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v_upper


# Singleton instance
settings = Settings()
