"""Application configuration using Pydantic BaseSettings."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """GIF maker configuration loaded from environment variables."""

    model_config = {"env_prefix": "GIFMAKER_", "env_file": ".env", "extra": "ignore"}

    # FFmpeg binary
    ffmpeg_path: str = "ffmpeg"
    # Below "info" ffmpeg stops printing the input banner with "Duration:"
    ffmpeg_loglevel: str = "info"

    # Frame rate used by jobs created with JobConfig.with_standard_fps
    standard_fps: int = 10

    # Cancellation
    kill_grace_period_s: float = 5.0

    # Diagnostic stream
    stderr_chunk_size: int = 1024
    stderr_tail_lines: int = 20


def get_settings() -> Settings:
    """Return a settings instance."""
    return Settings()
