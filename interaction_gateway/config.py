"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # FastAPI
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    debug: bool = Field(default=False)
    environment: str = Field(default="production")

    # Discord
    discord_public_key: str = Field(...)
    discord_token: str = Field(default="")
    discord_api_base_url: str = Field(default="https://discord.com/api/v10")

    # Owner-only commands are allowed for this user id
    owner_id: Optional[str] = Field(default=None)

    # Optional replay protection for signed requests (seconds)
    signature_max_age_seconds: Optional[int] = Field(default=None)

    # Monitoring
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v_upper

    @field_validator("discord_public_key")
    @classmethod
    def validate_public_key(cls, v: str) -> str:
        v = v.strip().lower()
        try:
            raw = bytes.fromhex(v)
        except ValueError:
            raise ValueError("discord_public_key must be hex encoded")
        if len(raw) != 32:
            raise ValueError("discord_public_key must be a 32-byte Ed25519 key")
        return v


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
