"""
Shared configuration for the translation worker.

Settings are read from the environment (and an optional .env file) once and
passed to the worker components. The translation endpoint settings are
required: constructing Settings without them fails immediately instead of on
the first remote call.
"""

import os
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Translation worker settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Service identification
    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "translation-worker")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Translation model (OpenAI-compatible chat completions endpoint)
    OPENROUTER_BASE_URL: str = Field(..., min_length=1)
    OPENROUTER_API_KEY: str = Field(..., min_length=1)
    OPENROUTER_MODEL: str = Field(..., min_length=1)
    OPENROUTER_REFERER: str = os.getenv("OPENROUTER_REFERER", "http://localhost:5010")
    OPENROUTER_APP_NAME: str = os.getenv("OPENROUTER_APP_NAME", "Transearly Service")
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "120"))

    # Google Cloud Vision / Speech REST endpoints
    GOOGLE_API_KEY: Optional[str] = os.getenv("GOOGLE_API_KEY")
    VISION_API_URL: str = os.getenv(
        "VISION_API_URL", "https://vision.googleapis.com/v1/images:annotate"
    )
    SPEECH_API_URL: str = os.getenv(
        "SPEECH_API_URL", "https://speech.googleapis.com/v1p1beta1/speech:recognize"
    )

    # Redis configuration
    REDIS_HOST: str = os.getenv("REDIS_HOST", "redis")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_PASSWORD: Optional[str] = os.getenv("REDIS_PASSWORD")
    REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # Worker configuration
    WORKER_CONCURRENCY: int = int(os.getenv("WORKER_CONCURRENCY", "5"))
    JOB_TIMEOUT: int = int(os.getenv("JOB_TIMEOUT", "1800"))

    # Text splitting and per-job fan-out
    CHUNK_SIZE: int = int(os.getenv("CHUNK_SIZE", "4000"))
    CHUNK_OVERLAP: int = int(os.getenv("CHUNK_OVERLAP", "200"))
    CHUNK_CONCURRENCY: int = int(os.getenv("CHUNK_CONCURRENCY", "10"))
    SLIDE_CONCURRENCY: int = int(os.getenv("SLIDE_CONCURRENCY", "5"))

    DEFAULT_TARGET_LANGUAGE: str = os.getenv("DEFAULT_TARGET_LANGUAGE", "Vietnamese")

    # Storage paths
    OUTPUT_DIR: str = os.getenv("OUTPUT_DIR", "translated-files")
    FONTS_DIR: str = os.getenv("FONTS_DIR", "assets/fonts")

    # Client notifications are published to "<prefix>:<handle>"
    NOTIFICATION_CHANNEL_PREFIX: str = os.getenv(
        "NOTIFICATION_CHANNEL_PREFIX", "translation-events"
    )

    # OpenTelemetry configuration
    OTEL_ENABLED: bool = os.getenv("OTEL_ENABLED", "false").lower() == "true"
    OTEL_EXPORTER_OTLP_ENDPOINT: str = os.getenv(
        "OTEL_EXPORTER_OTLP_ENDPOINT", "http://jaeger:4317"
    )


@lru_cache
def get_settings() -> Settings:
    """Build the process-wide settings on first use."""
    return Settings()
