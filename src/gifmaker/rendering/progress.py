"""FFmpeg progress monitoring."""

import codecs
import logging
import re
from datetime import timedelta

from gifmaker.models.messages import ProgressMessage, VideoDurationMessage
from gifmaker.rendering.timecode import parse_timecode, progress_from_durations

logger = logging.getLogger(__name__)

# "  Duration: 00:00:05.06, start: 0.000000, bitrate: 1785 kb/s"
_DURATION_RE = re.compile(r"\bDuration:\s*(\d+:\d{1,2}:\d{1,2}(?:\.\d+)?)")
# "frame=   50 fps=3.9 q=-0.0 size=  23430kB time=00:00:04.91 bitrate=..."
_TIME_RE = re.compile(r"(?<![\w-])time=\s*(\S+)")

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


class ProgressParser:
    """Extract duration and progress events from ffmpeg's stderr, one line at a time.

    The text format belongs to ffmpeg and drifts between versions, so any
    line that does not match is ignored. One parser serves a single job.
    """

    def __init__(self):
        self.total_duration: timedelta | None = None
        self._last_fraction: float | None = None

    def parse_line(self, line: str) -> list[VideoDurationMessage | ProgressMessage]:
        """Parse one stderr line and return the events it produces."""
        if self.total_duration is None:
            match = _DURATION_RE.search(line)
            if match:
                duration = parse_timecode(match.group(1))
                if duration is not None:
                    self.total_duration = duration
                    logger.debug("Video duration: %s", duration)
                    return [VideoDurationMessage(duration=duration)]

        match = _TIME_RE.search(line)
        if not match:
            return []
        current = parse_timecode(match.group(1))
        if current is None:
            return []

        if self.total_duration is None or self.total_duration <= timedelta(0):
            logger.debug("Ignoring time=%s, duration unknown", match.group(1))
            return []

        fraction = progress_from_durations(self.total_duration, current)
        if self._last_fraction is not None:
            fraction = max(fraction, self._last_fraction)
        if fraction == self._last_fraction:
            return []

        self._last_fraction = fraction
        return [ProgressMessage(fraction=fraction)]

    @property
    def progress(self) -> float:
        """Last emitted fraction [0, 1]."""
        return self._last_fraction or 0.0


class LineSplitter:
    """Turn raw stderr chunks into complete text lines.

    ffmpeg redraws its stats line with a bare carriage return, so "\\r",
    "\\n" and "\\r\\n" all end a line.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._partial = ""

    def feed(self, chunk: bytes) -> list[str]:
        text = self._partial + self._decoder.decode(chunk)
        parts = _LINE_BREAK_RE.split(text)
        # A trailing "\r" may be the first half of "\r\n"
        if text.endswith("\r"):
            self._partial = parts[-2] + "\r"
            return [p for p in parts[:-2] if p]
        self._partial = parts.pop()
        return [p for p in parts if p]

    def flush(self) -> list[str]:
        text = (self._partial + self._decoder.decode(b"", final=True)).rstrip("\r")
        self._partial = ""
        return [p for p in _LINE_BREAK_RE.split(text) if p]
