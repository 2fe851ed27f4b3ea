"""Converter — runs one ffmpeg GIF conversion job."""

import logging
import subprocess
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor

from gifmaker.config import Settings, get_settings
from gifmaker.models.errors import (
    ConversionCancelledError,
    EmptyStdoutError,
    GifMakerError,
    ProcessFailedError,
    SpawnFailedError,
    StreamIoError,
)
from gifmaker.models.job import JobConfig
from gifmaker.models.messages import (
    DoneMessage,
    ErrorMessage,
    ProgressMessage,
    SuccessMessage,
)
from gifmaker.pipeline.channels import (
    CommandReceiver,
    CommandSender,
    MessageReceiver,
    MessageSender,
    new_channels,
)
from gifmaker.pipeline.workers import CancellationController, read_stderr, read_stdout
from gifmaker.rendering.command import FFmpegCommandBuilder
from gifmaker.rendering.progress import ProgressParser

logger = logging.getLogger(__name__)


class Converter:
    """Converts a video to an animated GIF with ffmpeg.

    All results are reported on the message channel: zero or more
    VideoDuration/Progress messages, exactly one Success or Error, then Done.
    A converter runs a single job.
    """

    def __init__(
        self,
        messages: MessageSender,
        commands: CommandReceiver,
        settings: Settings | None = None,
    ):
        self.messages = messages
        self.commands = commands
        self.settings = settings or get_settings()
        self.builder = FFmpegCommandBuilder(self.settings)
        self._started = False
        self._lock = threading.Lock()

    @classmethod
    def new_with_channels(
        cls, settings: Settings | None = None
    ) -> tuple["Converter", CommandSender, MessageReceiver]:
        """Create a converter together with the application's ends of its channels."""
        message_tx, message_rx, command_tx, command_rx = new_channels()
        return cls(message_tx, command_rx, settings), command_tx, message_rx

    def spawn(self, job: JobConfig) -> threading.Thread:
        """Run convert() on a background thread and return the started thread."""
        thread = threading.Thread(target=self.convert, args=(job,), name="gif-converter")
        thread.start()
        return thread

    def convert(self, job: JobConfig) -> None:
        """Run the job to completion. Blocks until Done has been sent."""
        with self._lock:
            if self._started:
                raise RuntimeError("Converter has already run a job")
            self._started = True

        try:
            outcome = self._run(job)
        except GifMakerError as e:
            outcome = ErrorMessage.from_exception(e)
        except Exception as e:
            logger.exception("Conversion of %s crashed", job.video_path)
            outcome = ErrorMessage.from_exception(
                StreamIoError(f"Conversion failed: {e}", details={"error": repr(e)})
            )

        if isinstance(outcome, ErrorMessage):
            logger.info("Conversion of %s failed: %s", job.video_path, outcome.kind)
        else:
            logger.info("Conversion of %s done: %d bytes", job.video_path, len(outcome.data))
        self.messages.send(outcome)
        self.messages.send(DoneMessage())
        self.messages.close()

    def _run(self, job: JobConfig) -> SuccessMessage:
        cmd = self.builder.build_command(job)
        logger.debug("Running: %s", " ".join(cmd))

        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise SpawnFailedError(
                f"Failed to start ffmpeg: {e}",
                details={"command": cmd[0], "error": str(e)},
            ) from e

        logger.info("Started ffmpeg (pid %d) for %s", process.pid, job.video_path)
        controller = CancellationController(
            process, self.commands, grace_period_s=self.settings.kill_grace_period_s
        )

        try:
            with ThreadPoolExecutor(max_workers=3, thread_name_prefix="ffmpeg") as pool:
                stdout_future = pool.submit(read_stdout, process.stdout)
                stderr_future = pool.submit(
                    read_stderr,
                    process.stderr,
                    self.messages,
                    ProgressParser(),
                    self.settings.stderr_chunk_size,
                    self.settings.stderr_tail_lines,
                )
                cancel_future = pool.submit(controller.run)

                try:
                    returncode = process.wait()
                except BaseException:
                    process.kill()
                    raise
                finally:
                    self.commands.notify_process_exited()
            # Leaving the executor joins all three workers
        finally:
            for stream in (process.stdin, process.stdout, process.stderr):
                try:
                    stream.close()
                except OSError:
                    # stdin may already be broken after a cancel
                    pass

        return self._reconcile(returncode, stdout_future, stderr_future, cancel_future)

    def _reconcile(
        self,
        returncode: int,
        stdout_future: Future,
        stderr_future: Future,
        cancel_future: Future,
    ) -> SuccessMessage:
        """Fold the process status and worker outcomes into one result."""
        cancel_error = cancel_future.exception()
        if cancel_error is None and cancel_future.result():
            raise ConversionCancelledError("Conversion cancelled")

        for future in (cancel_future, stdout_future, stderr_future):
            error = future.exception()
            if isinstance(error, GifMakerError):
                raise error
            if error is not None:
                raise StreamIoError(f"Worker failed: {error}", details={"error": repr(error)})

        data = stdout_future.result()
        stderr_tail = stderr_future.result()

        if returncode != 0:
            logger.error("ffmpeg failed (code %d)", returncode)
            raise ProcessFailedError(
                f"ffmpeg exited with code {returncode}",
                exit_code=returncode,
                stderr_tail=stderr_tail,
            )
        if not data:
            raise EmptyStdoutError(
                "ffmpeg produced no output; the input format is probably unsupported",
                details={"stderr": stderr_tail},
            )
        return SuccessMessage(data=data)


def convert_to_gif(
    job: JobConfig,
    progress_callback: Callable[[float], None] | None = None,
    settings: Settings | None = None,
) -> bytes:
    """Convert a video and return the GIF bytes.

    Raises the GifMakerError subclass matching the job's error.
    """
    converter, _, receiver = Converter.new_with_channels(settings)
    thread = converter.spawn(job)

    outcome = None
    for message in receiver:
        if isinstance(message, ProgressMessage) and progress_callback:
            progress_callback(message.fraction)
        elif isinstance(message, (SuccessMessage, ErrorMessage)):
            outcome = message
    thread.join()

    if isinstance(outcome, ErrorMessage):
        raise outcome.to_exception()
    return outcome.data
