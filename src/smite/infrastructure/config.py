"""Configuration management for smite."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineConfig(BaseModel):
    """Native engine configuration."""

    library_path: Path | None = Field(
        default=None, description="Explicit path to the SQLite shared library"
    )
    busy_timeout_ms: int = Field(
        default=0, ge=0, description="Busy timeout applied after open (0 = engine default)"
    )


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="json", description="Log format")
    metrics_enabled: bool = Field(default=True, description="Record Prometheus metrics")
    otel_endpoint: str | None = Field(
        default=None, description="OpenTelemetry collector endpoint"
    )
    otel_service_name: str = Field(default="smite", description="Service name for tracing")


class SmiteConfig(BaseSettings):
    """Main configuration for smite."""

    model_config = SettingsConfigDict(
        env_prefix="SMITE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    engine: EngineConfig = Field(default_factory=EngineConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache
def get_config() -> SmiteConfig:
    """Get the global configuration instance."""
    return SmiteConfig()
