"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

The mock capture backend enables local development without FFmpeg or OpenCV.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.infrastructure.video.capture import CAPTURE_BACKENDS


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like cors_origins), use comma-separated values in env.
    """

    # Local API
    api_title: str = "SurfCoach AI"
    api_version: str = "v1"

    # Remote backend
    backend_url: str = Field(
        default="http://localhost:5000",
        description="Base URL of the SurfCoach backend (auth, analysis, payments)."
    )
    backend_timeout_seconds: float = Field(
        default=120.0,
        description="Timeout for a single backend request, including AI analysis."
    )

    # Frame capture
    capture_backend: str = Field(
        default="ffmpeg",
        description="Frame capture implementation: ffmpeg, opencv or mock."
    )
    ffmpeg_path: str = Field(
        default="ffmpeg",
        description="Path to the ffmpeg binary."
    )
    frame_count: int = Field(
        default=4,
        description="Frames sampled per analysis. Each one adds to upload size and AI cost."
    )
    fallback_duration_ms: int = Field(
        default=10_000,
        description="Duration assumed when the video's own duration is unknown."
    )
    capture_timeout_seconds: float = Field(
        default=15.0,
        description="Timeout for capturing a single frame. Timed out frames are skipped."
    )

    # Orchestration
    transition_delay_seconds: float = Field(
        default=0.9,
        description="Cosmetic pause after frame extraction. Zero for scripts."
    )
    finalize_delay_seconds: float = Field(
        default=0.6,
        description="Cosmetic pause before showing the result. Zero for scripts."
    )
    analysis_language: str = Field(
        default="it",
        description="Language tag sent with each analysis request."
    )

    # Session
    session_store_path: Optional[str] = Field(
        default=None,
        description="JSON file for the logged-in session. In-memory when unset."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:8081,http://localhost:19006",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def mock_capture(self) -> bool:
        return self.capture_backend == "mock"

    def validate_required_fields(self) -> list[str]:
        """
        Validate settings that Pydantic types alone can't express.

        Returns a list of problems, empty when the configuration is usable.
        """
        problems = []

        if not self.backend_url:
            problems.append("BACKEND_URL")
        if self.capture_backend not in CAPTURE_BACKENDS:
            problems.append(
                f"CAPTURE_BACKEND must be one of {', '.join(CAPTURE_BACKENDS)}"
            )
        if self.frame_count < 1:
            problems.append("FRAME_COUNT must be at least 1")
        if self.fallback_duration_ms <= 0:
            problems.append("FALLBACK_DURATION_MS must be positive")

        return problems


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
