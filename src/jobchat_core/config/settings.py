"""Application settings using pydantic-settings."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for jobchat."""

    model_config = SettingsConfigDict(env_prefix="JOBCHAT_", env_file=".env")

    # --- LLM ---
    anthropic_api_key: SecretStr = Field(
        description="Anthropic API key for the completion service",
    )
    interview_model: str = Field(
        default="claude-haiku-4-5-20251001",
        description="Model ID used to conduct interview turns",
    )
    report_model: str = Field(
        default="claude-sonnet-4-5-20250514",
        description="Model ID used to write the final interview report",
    )
    extraction_model: str = Field(
        default="claude-haiku-4-5-20251001",
        description="Model ID used for schema-directed extraction",
    )
    interview_temperature: float = Field(
        default=0.5,
        description="Sampling temperature for interviewer replies",
    )
    report_temperature: float = Field(
        default=0.3,
        description="Sampling temperature for report generation",
    )
    extraction_temperature: float = Field(
        default=0.1,
        description="Sampling temperature for JSON extraction",
    )
    max_output_tokens: int = Field(
        default=4096,
        description="Maximum tokens per completion",
    )
    llm_timeout_seconds: float = Field(
        default=60.0,
        description="Time budget for a single completion call",
    )
    llm_max_retries: int = Field(
        default=3,
        description="Attempts per completion call on transient provider errors",
    )
    llm_retry_wait_min: float = Field(
        default=1.0,
        description="Minimum retry wait in seconds",
    )
    llm_retry_wait_max: float = Field(
        default=10.0,
        description="Maximum retry wait in seconds",
    )

    # --- Database ---
    database_url: str = Field(
        default="sqlite+aiosqlite:///./jobchat.db",
        description="SQLAlchemy URL of the document store",
    )

    # --- Logging ---
    log_level: str = Field(
        default="INFO",
        description="Root log level",
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        description="Log renderer: 'console' for humans, 'json' for aggregation",
    )

    # --- Tracing ---
    otel_exporter: Literal["none", "console", "otlp"] = Field(
        default="none",
        description="OpenTelemetry span exporter",
    )
    otel_endpoint: str = Field(
        default="http://localhost:4317",
        description="OTLP collector endpoint",
    )
    otel_service_name: str = Field(
        default="jobchat",
        description="service.name resource attribute",
    )

    @model_validator(mode="after")
    def validate_llm_config(self) -> Settings:
        """Keep temperatures and time budgets within usable ranges."""
        for name in ("interview_temperature", "report_temperature", "extraction_temperature"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                msg = f"{name} must be within [0.0, 1.0], got {value}"
                raise ValueError(msg)
        if self.llm_timeout_seconds <= 0:
            msg = "llm_timeout_seconds must be positive"
            raise ValueError(msg)
        if self.llm_max_retries < 1:
            msg = "llm_max_retries must be at least 1"
            raise ValueError(msg)
        return self
