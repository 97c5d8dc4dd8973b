"""
Configuration management for the CEFR grader.

Uses Pydantic Settings for type-safe configuration loading from environment variables.
All configuration is validated at startup to fail fast on misconfiguration.
"""

from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cefr_grader.registry import DEFAULT_MODEL_KEY, MODEL_REGISTRY


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are validated at startup. The gateway credential is optional:
    without it every remote call fails and grading falls back to the heuristics.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ==========================================================================
    # AI Gateway Configuration
    # ==========================================================================
    gateway_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("gateway_api_key", "ai_gateway_api_key"),
        description="API key for the AI gateway (OpenAI-compatible endpoint)",
    )

    gateway_base_url: str = Field(
        default="https://ai-gateway.vercel.sh/v1",
        description="Base URL for the AI gateway",
    )

    default_model_key: str = Field(
        default=DEFAULT_MODEL_KEY,
        description="Model registry key used for all grading calls",
    )

    gateway_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        le=300.0,
        description="Deadline for one streaming call, after which grading falls back",
    )

    # ==========================================================================
    # Grading Configuration
    # ==========================================================================
    grading_temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Sampling temperature (low for grading consistency)",
    )

    response_max_tokens: int = Field(
        default=800,
        ge=16,
        description="Output token ceiling for single-task grading",
    )

    exam_max_tokens: int = Field(
        default=1000,
        ge=16,
        description="Output token ceiling for whole-exam grading",
    )

    heuristic_delay_seconds: float = Field(
        default=0.0,
        ge=0.0,
        le=10.0,
        description="Artificial latency added to the fallback path",
    )

    # ==========================================================================
    # Service Configuration
    # ==========================================================================
    log_level: str = Field(default="INFO", description="Root log level")

    api_host: str = Field(default="127.0.0.1", description="Bind address for `serve`")

    api_port: int = Field(default=8000, ge=1, le=65535, description="Port for `serve`")

    @field_validator("gateway_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure base URL doesn't have trailing slash."""
        return v.rstrip("/")

    @field_validator("default_model_key")
    @classmethod
    def validate_model_key(cls, v: str) -> str:
        """Ensure the default model exists in the registry."""
        if v not in MODEL_REGISTRY:
            known = ", ".join(sorted(MODEL_REGISTRY))
            raise ValueError(f"Unknown model key '{v}'. Known keys: {known}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalise the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.
    """
    return Settings()
