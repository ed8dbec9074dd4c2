"""
MotoNomad AI Gateway - Configuration Management
Supports direct OpenRouter access and a trusted proxy in front of it
"""

from functools import lru_cache
from typing import Optional, List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class OpenRouterSettings(BaseSettings):
    """OpenRouter gateway configuration. Read-only once constructed."""

    model_config = SettingsConfigDict(env_prefix="OPENROUTER__", frozen=True)

    # Direct mode: only used when use_proxy is False
    api_key: str = Field(
        default="",
        description="OpenRouter API key. Placeholders such as 'your-api-key-here' count as missing."
    )
    base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenRouter API base URL"
    )

    # Proxy mode: the proxy holds the provider key
    use_proxy: bool = Field(default=False)
    proxy_url: Optional[str] = Field(
        default=None,
        description="Root URL of the trusted proxy (required when use_proxy is True)"
    )
    proxy_auth_key: str = Field(
        default="",
        description="Bearer credential presented to the proxy"
    )

    http_referer: str = Field(default="https://github.com/domadev0101/10xMotoNomad")
    app_title: str = Field(default="MotoNomad - Travel Planning App")

    timeout_seconds: int = Field(default=60, ge=1)
    max_retries: int = Field(default=3, ge=1)
    max_concurrent_requests: int = Field(default=5, ge=1)
    min_request_delay_ms: int = Field(default=100, ge=0)

    # API key probe
    validation_model: str = Field(default="openai/gpt-3.5-turbo")
    validation_timeout_seconds: int = Field(default=10, ge=1)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Strip the trailing slash so endpoints join cleanly."""
        return v.rstrip("/")

    @field_validator("proxy_url")
    @classmethod
    def validate_proxy_url(cls, v: Optional[str]) -> Optional[str]:
        """Treat a blank proxy URL as not configured."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @property
    def mode(self) -> str:
        """Human-readable addressing mode."""
        return "proxy" if self.use_proxy else "direct"


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_name: str = Field(default="motonomad-ai-gateway")
    environment: str = Field(default="production")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # API
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    cors_origins: List[str] = Field(
        default=["http://localhost", "http://localhost:5000"]
    )

    # Trip planner
    trip_planner_model: str = Field(default="google/gemma-3-27b-it:free")

    # Nested settings
    openrouter: OpenRouterSettings = Field(default_factory=OpenRouterSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
