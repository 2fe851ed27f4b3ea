"""Workers that run alongside an ffmpeg child process.

Each worker owns one of the child's streams. Workers never emit a terminal
outcome: they return a value or raise, and the converter reconciles.
"""

import logging
import subprocess
from collections import deque
from typing import BinaryIO

from gifmaker.models.errors import StreamIoError
from gifmaker.models.messages import Command
from gifmaker.pipeline.channels import PROCESS_EXITED, CommandReceiver, MessageSender
from gifmaker.rendering.progress import LineSplitter, ProgressParser

logger = logging.getLogger(__name__)


def read_stdout(stream: BinaryIO, chunk_size: int = 65536) -> bytes:
    """Drain stdout to end-of-stream. The bytes are not interpreted."""
    buffer = bytearray()
    try:
        while chunk := stream.read(chunk_size):
            buffer.extend(chunk)
    except (OSError, ValueError) as e:
        raise StreamIoError(
            f"Failed to read ffmpeg stdout: {e}",
            details={"stream": "stdout", "bytes_read": len(buffer)},
        ) from e
    logger.debug("stdout closed after %d bytes", len(buffer))
    return bytes(buffer)


def read_stderr(
    stream: BinaryIO,
    sender: MessageSender,
    parser: ProgressParser,
    chunk_size: int = 1024,
    tail_lines: int = 20,
) -> list[str]:
    """Drain stderr, forwarding duration/progress events as they are parsed.

    Returns the last `tail_lines` lines for failure diagnostics.
    """
    splitter = LineSplitter()
    tail: deque[str] = deque(maxlen=tail_lines)

    def handle(lines: list[str]) -> None:
        for line in lines:
            tail.append(line)
            for event in parser.parse_line(line):
                sender.send(event)

    try:
        # read1 returns as soon as some bytes are available
        while chunk := stream.read1(chunk_size):
            handle(splitter.feed(chunk))
    except (OSError, ValueError) as e:
        raise StreamIoError(
            f"Failed to read ffmpeg stderr: {e}",
            details={"stream": "stderr", "stderr": list(tail)},
        ) from e
    handle(splitter.flush())
    return list(tail)


class CancellationController:
    """Waits for a cancel command or the process exit, whichever comes first."""

    def __init__(
        self,
        process: subprocess.Popen,
        commands: CommandReceiver,
        grace_period_s: float = 5.0,
    ):
        self.process = process
        self.commands = commands
        self.grace_period_s = grace_period_s

    def run(self) -> bool:
        """Return True if a cancellation was honored."""
        while True:
            command = self.commands.recv()
            if command is PROCESS_EXITED:
                return False
            if command == Command.CANCEL:
                break
            logger.debug("Ignoring unknown command %r", command)

        logger.info("Cancelling ffmpeg (pid %d)", self.process.pid)
        self._terminate()
        return True

    def _terminate(self) -> None:
        """Ask ffmpeg to quit via stdin, killing it if that is refused or ignored."""
        try:
            self.process.stdin.write(b"q")
            self.process.stdin.flush()
        except (OSError, ValueError) as e:
            logger.warning("ffmpeg refused quit command (%s), killing it", e)
            self.process.kill()
            return

        try:
            self.process.wait(timeout=self.grace_period_s)
        except subprocess.TimeoutExpired:
            logger.warning(
                "ffmpeg still running %.1fs after quit command, killing it",
                self.grace_period_s,
            )
            self.process.kill()
