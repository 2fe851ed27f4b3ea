"""Error taxonomy and exception hierarchy."""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Terminal error categories a conversion job can end with."""

    SPAWN_FAILED = "spawn_failed"
    STREAM_IO_FAILURE = "stream_io_failure"
    EMPTY_STDOUT = "empty_stdout"
    PROCESS_FAILED = "process_failed"
    CANCELLED = "cancelled"


class GifMakerError(Exception):
    """Base error for all conversion errors."""

    kind: ErrorKind = ErrorKind.PROCESS_FAILED

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class SpawnFailedError(GifMakerError):
    """The ffmpeg binary could not be started (missing, not executable)."""

    kind = ErrorKind.SPAWN_FAILED


class StreamIoError(GifMakerError):
    """A pipe read or write failed while the job was running."""

    kind = ErrorKind.STREAM_IO_FAILURE


class EmptyStdoutError(GifMakerError):
    """ffmpeg exited successfully but wrote nothing to stdout.

    Usually an unsupported input format: ffmpeg still exits with 0 but
    produces no GIF data.
    """

    kind = ErrorKind.EMPTY_STDOUT


class ProcessFailedError(GifMakerError):
    """ffmpeg exited with a non-zero status."""

    kind = ErrorKind.PROCESS_FAILED

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        stderr_tail: list[str] | None = None,
        details: dict | None = None,
    ):
        details = dict(details or {})
        if exit_code is not None:
            details.setdefault("exit_code", exit_code)
        if stderr_tail:
            details.setdefault("stderr", stderr_tail)
        super().__init__(message, details=details)
        self.exit_code = exit_code
        self.stderr_tail = stderr_tail or []


class ConversionCancelledError(GifMakerError):
    """The job was cancelled before ffmpeg finished."""

    kind = ErrorKind.CANCELLED


_ERRORS_BY_KIND: dict[ErrorKind, type[GifMakerError]] = {
    cls.kind: cls
    for cls in (
        SpawnFailedError,
        StreamIoError,
        EmptyStdoutError,
        ProcessFailedError,
        ConversionCancelledError,
    )
}


def error_for_kind(kind: ErrorKind) -> type[GifMakerError]:
    """Return the exception class raised for an error kind."""
    return _ERRORS_BY_KIND[ErrorKind(kind)]
