"""Integration tests against a real ffmpeg binary."""

import shutil
import subprocess
import time

import pytest

from gifmaker.config import Settings
from gifmaker.models import (
    ErrorKind,
    ErrorMessage,
    JobConfig,
    ProgressMessage,
    SuccessMessage,
    VideoDurationMessage,
)
from gifmaker.pipeline.converter import Converter
from tests.conftest import collect, run_job

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(shutil.which("ffmpeg") is None, reason="ffmpeg not installed"),
]


def _make_test_video(path, seconds=2):
    subprocess.run(
        [
            "ffmpeg",
            "-y",
            "-loglevel",
            "error",
            "-f",
            "lavfi",
            "-i",
            f"testsrc=duration={seconds}:size=160x120:rate=15",
            "-pix_fmt",
            "yuv420p",
            str(path),
        ],
        check=True,
    )
    return path


@pytest.fixture
def settings():
    return Settings(ffmpeg_path="ffmpeg", kill_grace_period_s=2.0)


class TestFFmpegConversion:
    def test_short_video(self, tmp_path, settings):
        video = _make_test_video(tmp_path / "short.mp4")
        messages = run_job(JobConfig.with_standard_fps(video, 80), settings, timeout=60)

        assert messages[-1].type == "done"
        outcome = messages[-2]
        assert isinstance(outcome, SuccessMessage)
        assert outcome.data.startswith(b"GIF8")

        durations = [m for m in messages if isinstance(m, VideoDurationMessage)]
        assert len(durations) == 1
        progress = [m.fraction for m in messages if isinstance(m, ProgressMessage)]
        assert progress == sorted(progress)
        assert all(0.0 <= f <= 1.0 for f in progress)

    def test_missing_source(self, tmp_path, settings):
        job = JobConfig.with_standard_fps(tmp_path / "missing.mp4", 80)
        messages = run_job(job, settings, timeout=60)

        outcome = messages[-2]
        assert isinstance(outcome, ErrorMessage)
        assert outcome.kind in (ErrorKind.PROCESS_FAILED, ErrorKind.SPAWN_FAILED)
        assert not any(isinstance(m, (ProgressMessage, VideoDurationMessage)) for m in messages)

    def test_cancel_long_video(self, tmp_path, settings):
        video = _make_test_video(tmp_path / "long.mp4", seconds=120)
        converter, commands, receiver = Converter.new_with_channels(settings)
        thread = converter.spawn(JobConfig(video_path=video, width=320, fps=25))

        time.sleep(0.01)
        commands.cancel()
        messages = collect(receiver, timeout=30)
        thread.join(timeout=30)

        assert not thread.is_alive()
        assert messages[-2].kind == ErrorKind.CANCELLED
