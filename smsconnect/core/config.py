"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "SMSConnect"
    app_version: str = "0.6.0"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Redis
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )

    # SMS provider
    sms_api_url: str = Field(
        default="https://api.coolsms.co.kr",
        description="SMS provider base URL",
    )
    sms_send_path: str = Field(
        default="/messages/v4/send",
        description="SMS send endpoint path",
    )
    sms_balance_path: str = Field(
        default="/cash/v1/balance",
        description="SMS balance endpoint path",
    )

    # Alimtalk provider
    alimtalk_api_url: str = Field(
        default="https://api.alimtalk.provider.com",
        description="Alimtalk provider base URL",
    )
    alimtalk_send_path: str = Field(
        default="/send/alimtalk",
        description="Alimtalk send endpoint path",
    )

    # HTTP
    http_timeout: float = Field(
        default=30.0,
        ge=15.0,
        le=45.0,
        description="Outbound request timeout in seconds",
    )

    # Notification
    low_balance_cooldown_seconds: int = Field(
        default=86400,
        ge=1,
        description="Minimum seconds between two low-balance alerts",
    )
    delivery_log_max_entries: int = Field(
        default=10000,
        ge=100,
        description="Maximum delivery log entries kept in Redis",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
