"""FFmpeg command construction for GIF conversion."""

from gifmaker.config import Settings, get_settings
from gifmaker.models.job import JobConfig


class FFmpegCommandBuilder:
    """Translates a JobConfig into ffmpeg arguments. Pure, no I/O."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def resolve_binary(self, job: JobConfig) -> str:
        """Per-job override first, then configured path."""
        return job.ffmpeg_path or self.settings.ffmpeg_path or "ffmpeg"

    def resolve_fps(self, job: JobConfig) -> int:
        return self.settings.standard_fps if job.uses_standard_fps else job.fps

    def build_filter_complex(self, fps: int, width: int) -> str:
        """Two-pass palette graph: generate an optimal palette, then map frames onto it."""
        return (
            f"fps={fps},scale={width}:-1[s]; "
            "[s]split[a][b]; "
            "[a]palettegen[palette]; "
            "[b][palette]paletteuse"
        )

    def build_command(self, job: JobConfig) -> list[str]:
        """Build the complete ffmpeg command. The GIF is written to stdout."""
        return [
            self.resolve_binary(job),
            "-hide_banner",
            "-loglevel",
            self.settings.ffmpeg_loglevel,
            "-stats",
            "-i",
            str(job.video_path),
            "-filter_complex",
            self.build_filter_complex(self.resolve_fps(job), job.width),
            "-f",
            "gif",
            "-",
        ]
