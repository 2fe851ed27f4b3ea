"""Shared test fixtures and a scriptable stand-in for ffmpeg."""

import stat
import sys
import textwrap
from pathlib import Path

import pytest

from gifmaker.config import Settings
from gifmaker.models.job import JobConfig
from gifmaker.pipeline.converter import Converter

GIF_BYTES = b"GIF89a" + b"\x00" * 64 + b";"

# Behaviour is picked with FAKE_FFMPEG_MODE:
#   ok          banner + four progress lines + GIF on stdout, exit 0
#   empty       banner, nothing on stdout, exit 0
#   fail        error text, exit 1
#   no_duration progress lines without a banner, GIF on stdout, exit 0
#   slow        long video, keeps writing until "q" arrives on stdin
#   stubborn    like slow but never reads stdin
#   no_stdin    like slow but closes stdin right away
_FAKE_FFMPEG = textwrap.dedent(
    '''
    import os
    import sys
    import threading
    import time

    mode = os.environ.get("FAKE_FFMPEG_MODE", "ok")
    argv_file = os.environ.get("FAKE_FFMPEG_ARGV_FILE")
    if argv_file:
        with open(argv_file, "w") as f:
            f.write("\\n".join(sys.argv[1:]))

    err = sys.stderr
    out = sys.stdout.buffer
    gif = b"GIF89a" + b"\\x00" * 64 + b";"

    def banner(duration):
        err.write("Input #0, mov,mp4,m4a,3gp,3g2,mj2, from 'input.mp4':\\n")
        err.write("  Metadata:\\n    major_brand     : mp42\\n")
        err.write(f"  Duration: {duration}, start: 0.000000, bitrate: 1785 kb/s\\n")
        err.write("  Stream #0:0: Video: h264 (High), yuv420p, 960x540, 29.97 fps\\n")
        err.flush()

    def stats(t):
        err.write(f"frame=   50 fps=3.9 q=-0.0 size=     256kB time={t} bitrate=419.4kbits/s speed=1x    \\r")
        err.flush()

    if mode == "fail":
        err.write("input.mp4: No such file or directory\\n")
        sys.exit(1)

    if mode in ("ok", "empty"):
        banner("00:00:02.00")
        if mode == "empty":
            sys.exit(0)
        for i, t in enumerate(("00:00:00.50", "00:00:01.00", "00:00:01.50", "00:00:02.00")):
            stats(t)
            out.write(gif[i * 16 : (i + 1) * 16])
            out.flush()
        out.write(gif[64:])
        err.write("\\n")
        sys.exit(0)

    if mode == "no_duration":
        for t in ("00:00:00.50", "00:00:01.00"):
            stats(t)
        out.write(gif)
        sys.exit(0)

    quit_requested = threading.Event()

    def watch_stdin():
        while True:
            data = sys.stdin.buffer.read(1)
            if not data or data == b"q":
                quit_requested.set()
                return

    if mode == "slow":
        threading.Thread(target=watch_stdin, daemon=True).start()
    elif mode == "no_stdin":
        os.close(0)

    banner("01:00:00.00")
    seconds = 0
    while not quit_requested.is_set() and seconds < 600:
        seconds += 1
        stats(f"00:00:{seconds % 60:02d}.00")
        out.write(b"\\x00")
        out.flush()
        time.sleep(0.05)
    sys.exit(0)
    '''
)


@pytest.fixture
def fake_ffmpeg(tmp_path) -> Path:
    """An executable script that behaves like ffmpeg for the converter."""
    path = tmp_path / "ffmpeg"
    path.write_text(f"#!{sys.executable}\n{_FAKE_FFMPEG}")
    path.chmod(path.stat().st_mode | stat.S_IEXEC | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def settings():
    """Settings with a short kill grace period so cancellation tests stay fast."""
    return Settings(kill_grace_period_s=0.5)


@pytest.fixture
def job(tmp_path, fake_ffmpeg):
    """A job that runs the fake ffmpeg."""
    return JobConfig.with_standard_fps(tmp_path / "input.mp4", 200).with_ffmpeg_path(fake_ffmpeg)


def run_job(job: JobConfig, settings: Settings, timeout: float = 10.0) -> list:
    """Run a job to completion and return every message it sent."""
    converter, _, receiver = Converter.new_with_channels(settings)
    thread = converter.spawn(job)
    messages = collect(receiver, timeout)
    thread.join(timeout)
    assert not thread.is_alive()
    return messages


def collect(receiver, timeout: float = 10.0) -> list:
    """Read messages up to and including Done."""
    messages = []
    while True:
        message = receiver.recv(timeout=timeout)
        messages.append(message)
        if message.type == "done":
            return messages
