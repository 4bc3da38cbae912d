"""
Application Configuration - Pydantic Settings for type-safe config.

All collaborators (store, model provider, pipeline) receive this object
explicitly; nothing else reads the process environment.
FAIL FAST - Critical config is validated at startup.
"""

import sys

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when critical configuration is missing or invalid."""

    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration - NO DEFAULT for production safety
    database_url: str = ""
    database_pool_size: int = 10
    database_max_overflow: int = 5
    database_pool_timeout: int = 10
    database_pool_recycle: int = 3600
    store_timeout_seconds: float = 10.0  # Bound for every account store call

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_title: str = "PostEngine Caption API"
    api_version: str = "0.1.0"
    api_description: str = "Credit-gated caption and hashtag generation"
    cors_origins: list[str] = Field(default_factory=lambda: ["https://postengineai.com"])

    # Generative model provider - OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str | None = None
    openai_timeout_seconds: float = 30.0

    # Credits
    trial_allotment: int = 20  # Free generations for a new visitor
    generation_cost: int = 1  # Credits consumed per generation call

    # Visitor identity
    anonymous_cookie_name: str = "pe_anon"

    # Request limits
    max_prompt_chars: int = 400
    max_media_chars: int = 5_000_000  # ~5MB data URL
    max_video_frames_accepted: int = 60
    max_video_frames_sent: int = 8

    # Platforms
    default_platforms: list[str] = Field(default_factory=lambda: ["instagram"])
    companion_platforms: list[str] = Field(default_factory=lambda: ["whatsapp", "facebook"])
    companion_caption_count: int = 3

    # Accept a request with only a contentType and no topic/media
    allow_empty_request_with_content_type: bool = False

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    # Observability - Metrics
    metrics_enabled: bool = True

    # Observability - Tracing
    tracing_enabled: bool = True
    otlp_endpoint: str = "http://otel-collector:4317"
    otlp_insecure: bool = True
    service_name: str = "postengine-api"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_critical_config(self) -> "Settings":
        """
        FAIL FAST: Validate critical configuration at startup.

        The app MUST NOT start without a database or model credentials.
        """
        errors: list[str] = []

        if not self.database_url:
            errors.append("DATABASE_URL is required but empty or missing")
        elif not self.database_url.startswith(("postgresql", "postgres")):
            errors.append(
                f"DATABASE_URL must be a PostgreSQL URL, got: {self.database_url[:20]}..."
            )

        if not self.openai_api_key:
            errors.append("OPENAI_API_KEY is required but empty or missing")

        if self.generation_cost < 1:
            errors.append(f"GENERATION_COST must be >= 1, got: {self.generation_cost}")

        if self.trial_allotment < 0:
            errors.append(f"TRIAL_ALLOTMENT must be >= 0, got: {self.trial_allotment}")

        if not self.default_platforms:
            errors.append("DEFAULT_PLATFORMS must name at least one platform")

        if errors:
            error_msg = "\n".join(
                [
                    "",
                    "=" * 60,
                    "CRITICAL CONFIGURATION ERROR - APPLICATION CANNOT START",
                    "=" * 60,
                    *[f"  ✗ {e}" for e in errors],
                    "=" * 60,
                    "",
                ]
            )
            print(error_msg, file=sys.stderr)
            raise ConfigurationError(error_msg)

        return self


# Global settings instance - validates at import time
settings = Settings()


def get_settings() -> Settings:
    """Get application settings instance."""
    return settings
