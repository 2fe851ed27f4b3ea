"""Messages sent by the converter and commands sent to it."""

from datetime import timedelta
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from gifmaker.models.errors import ErrorKind, GifMakerError, ProcessFailedError, error_for_kind


class Command(StrEnum):
    """Commands the application can send to a running converter."""

    CANCEL = "cancel"


class VideoDurationMessage(BaseModel):
    """Source duration reported by ffmpeg. Sent at most once, before any progress."""

    type: Literal["video_duration"] = "video_duration"
    duration: timedelta


class ProgressMessage(BaseModel):
    """Completion fraction derived from ffmpeg's elapsed encoding time."""

    type: Literal["progress"] = "progress"
    fraction: float = Field(..., ge=0, le=1)


class SuccessMessage(BaseModel):
    """The encoded GIF."""

    type: Literal["success"] = "success"
    data: bytes

    def __repr__(self) -> str:
        return f"SuccessMessage(data=<{len(self.data)} bytes>)"


class ErrorMessage(BaseModel):
    """Terminal error of a job."""

    type: Literal["error"] = "error"
    kind: ErrorKind
    message: str = Field(default="")
    details: dict = Field(default_factory=dict)
    exit_code: int | None = None

    @classmethod
    def from_exception(cls, exc: GifMakerError) -> "ErrorMessage":
        return cls(
            kind=exc.kind,
            message=exc.message,
            details=exc.details,
            exit_code=getattr(exc, "exit_code", None),
        )

    def to_exception(self) -> GifMakerError:
        """Rebuild the typed exception this message stands for."""
        if self.kind == ErrorKind.PROCESS_FAILED:
            return ProcessFailedError(
                self.message,
                exit_code=self.exit_code,
                stderr_tail=self.details.get("stderr"),
                details=self.details,
            )
        return error_for_kind(self.kind)(self.message, details=self.details)


class DoneMessage(BaseModel):
    """Always the last message of a job."""

    type: Literal["done"] = "done"


Message = Annotated[
    VideoDurationMessage | ProgressMessage | SuccessMessage | ErrorMessage | DoneMessage,
    Field(discriminator="type"),
]


def is_terminal(message: Message) -> bool:
    """True for the single Success or Error outcome of a job."""
    return isinstance(message, (SuccessMessage, ErrorMessage))
