"""
Application configuration using Pydantic settings.
"""
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Realtime Database Configuration
    database_url: str = Field(
        default="https://xamu-wil-default-rtdb.firebaseio.com",
        description="Base URL of the Firebase Realtime Database"
    )
    database_auth_token: str = Field(
        default="",
        description="Database secret or ID token sent as the 'auth' query parameter"
    )
    database_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for database reads and writes"
    )

    # Weather API Configuration
    weather_api_base_url: str = Field(
        default="https://api.weatherapi.com/v1",
        description="Base URL for the weather API"
    )
    weather_api_key: str = Field(
        default="",
        description="API key for the weather API"
    )

    # Chat Completion API Configuration
    chat_api_url: str = Field(
        default="https://api.groq.com/openai/v1/chat/completions",
        description="OpenAI-compatible chat completions endpoint"
    )
    chat_api_key: str = Field(
        default="",
        description="API key for the chat completions endpoint"
    )
    chat_model: str = Field(
        default="llama3-8b-8192",
        description="Model used for field data insights"
    )

    # Retry Configuration (weather API only)
    max_retry_attempts: int = Field(
        default=3,
        description="Maximum number of retry attempts for weather API calls"
    )
    retry_backoff_multiplier: int = Field(
        default=1,
        description="Multiplier for exponential backoff"
    )
    retry_min_wait: int = Field(
        default=1,
        description="Minimum wait time in seconds between retries"
    )
    retry_max_wait: int = Field(
        default=10,
        description="Maximum wait time in seconds between retries"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (use specific origins in production)"
    )

    # Rate Limiting
    rate_limit_requests: int = Field(
        default=100,
        description="Maximum requests per minute per client"
    )

    # Application Settings
    app_name: str = Field(
        default="XAMU Wetlands Field Data API",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
