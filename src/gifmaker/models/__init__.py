"""Data models for the GIF maker."""

from gifmaker.models.errors import (
    ConversionCancelledError,
    EmptyStdoutError,
    ErrorKind,
    GifMakerError,
    ProcessFailedError,
    SpawnFailedError,
    StreamIoError,
)
from gifmaker.models.job import JobConfig
from gifmaker.models.messages import (
    Command,
    DoneMessage,
    ErrorMessage,
    Message,
    ProgressMessage,
    SuccessMessage,
    VideoDurationMessage,
    is_terminal,
)

__all__ = [
    "Command",
    "ConversionCancelledError",
    "DoneMessage",
    "EmptyStdoutError",
    "ErrorKind",
    "ErrorMessage",
    "GifMakerError",
    "JobConfig",
    "Message",
    "ProcessFailedError",
    "ProgressMessage",
    "SpawnFailedError",
    "StreamIoError",
    "SuccessMessage",
    "VideoDurationMessage",
    "is_terminal",
]
