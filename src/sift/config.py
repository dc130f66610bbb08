"""Configuration management for Sift."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

VISUALIZATION_KEYWORDS = frozenset({"histograma", "histogram", "gráfico", "chart", "diagram"})


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="SIFT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Configuration
    api_key: str | None = Field(None, description="API key for the remote agent service")
    api_base: str | None = Field(None, description="Optional API base URL")

    # Model Configuration
    model: str = Field(default="gpt-4o-mini", description="Model used by the remote worker")
    alternate_model: str | None = Field(None, description="Model used for visualization requests")

    # Invocation Configuration
    deadline_seconds: float = Field(default=300.0, description="Hard deadline for one invocation")
    max_turns: int = Field(default=20, description="Maximum number of turns read per question")
    release_timeout_seconds: float = Field(default=30.0, description="Timeout for each release call")
    completion_markers: list[str] = Field(
        default_factory=lambda: ["analysis complete", "final result"],
        description="Phrases that mark a worker turn as final",
    )
    delimiter: str = Field(default=",", description="Column delimiter used by the fallback analyzer")
    output_dir: Path | None = Field(None, description="Where worker-generated files are saved")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level")

    @field_validator("deadline_seconds", "release_timeout_seconds", "max_turns")
    @classmethod
    def _must_be_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @field_validator("delimiter")
    @classmethod
    def _single_delimiter(cls, value: str) -> str:
        if not value:
            raise ValueError("delimiter must not be empty")
        return value


def get_settings(**overrides: Any) -> Settings:
    """Get application settings.

    Args:
        overrides: Explicit values that win over environment and .env

    Returns:
        Settings instance
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    return Settings(**values)


def is_visualization_request(question: str) -> bool:
    lowered = question.casefold()
    return any(keyword in lowered for keyword in VISUALIZATION_KEYWORDS)


def select_model(question: str, settings: Settings) -> str:
    """Pick the worker model for one question.

    Visualization requests go to the alternate model when one is configured
    and differs from the primary model.
    """
    alternate = (settings.alternate_model or "").strip()
    if alternate and alternate != settings.model and is_visualization_request(question):
        return alternate
    return settings.model
