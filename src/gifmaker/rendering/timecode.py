"""Parsing of ffmpeg timecodes."""

import logging
import re
from datetime import timedelta

logger = logging.getLogger(__name__)

# HH:MM:SS.ff as printed by ffmpeg (e.g. 00:00:04.91)
_TIMECODE_RE = re.compile(r"^(\d+):(\d{1,2}):(\d{1,2})(?:\.(\d+))?$")


def parse_timecode(text: str) -> timedelta | None:
    """Parse an ffmpeg timecode. Returns None for anything malformed."""
    match = _TIMECODE_RE.match(text.strip())
    if not match:
        logger.debug("Not a timecode: %r", text)
        return None

    hours, minutes, seconds = (int(match.group(i)) for i in (1, 2, 3))
    if minutes >= 60 or seconds >= 60:
        logger.debug("Timecode out of range: %r", text)
        return None

    fraction = match.group(4)
    microseconds = round(float(f"0.{fraction}") * 1_000_000) if fraction else 0
    return timedelta(hours=hours, minutes=minutes, seconds=seconds, microseconds=microseconds)


def progress_from_durations(total: timedelta, processed: timedelta) -> float:
    """Fraction of `total` covered by `processed`, clamped to [0, 1]."""
    if total <= timedelta(0):
        return 0.0
    return max(0.0, min(1.0, processed / total))
