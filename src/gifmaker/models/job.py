"""Conversion job configuration."""

from pathlib import Path

from pydantic import BaseModel, Field


class JobConfig(BaseModel):
    """Settings for a single video-to-GIF conversion job."""

    model_config = {"frozen": True}

    video_path: Path = Field(..., description="Source video to convert")
    width: int = Field(..., gt=0, description="Output GIF width in pixels")
    fps: int | None = Field(
        default=None, gt=0, description="Output frame rate; None uses the standard rate"
    )
    ffmpeg_path: str | None = Field(default=None, description="Override for the ffmpeg binary")

    @classmethod
    def with_standard_fps(cls, video_path: str | Path, width: int) -> "JobConfig":
        return cls(video_path=Path(video_path), width=width)

    def with_ffmpeg_path(self, ffmpeg_path: str | Path) -> "JobConfig":
        """Return a copy that runs the given ffmpeg binary."""
        return self.model_copy(update={"ffmpeg_path": str(ffmpeg_path)})

    @property
    def uses_standard_fps(self) -> bool:
        return self.fps is None
