"""Channels between the converter and the application."""

import asyncio
import logging
import queue
import threading
from collections.abc import AsyncIterator, Iterator

from gifmaker.models.messages import Command, DoneMessage, Message

logger = logging.getLogger(__name__)


class _ProcessExited:
    """Wake-up placed on the command queue once ffmpeg has exited."""


PROCESS_EXITED = _ProcessExited()


class MessageSender:
    """Producer end of the message channel. Shared by the converter's workers."""

    def __init__(self, channel: queue.SimpleQueue):
        self._channel = channel
        self._closed = False
        self._lock = threading.Lock()

    def send(self, message: Message) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError(f"Message channel closed, dropping {message!r}")
            self._channel.put(message)

    def close(self) -> None:
        """Refuse any further message. Called right after Done."""
        with self._lock:
            self._closed = True


class MessageReceiver:
    """Consumer end of the message channel."""

    def __init__(self, channel: queue.SimpleQueue):
        self._channel = channel

    def recv(self, timeout: float | None = None) -> Message:
        """Block until the next message. Raises TimeoutError on timeout."""
        try:
            return self._channel.get(timeout=timeout)
        except queue.Empty:
            raise TimeoutError(f"No message within {timeout}s")

    def __iter__(self) -> Iterator[Message]:
        """Yield messages up to and including Done."""
        while True:
            message = self.recv()
            yield message
            if isinstance(message, DoneMessage):
                return

    async def __aiter__(self) -> AsyncIterator[Message]:
        while True:
            message = await asyncio.to_thread(self.recv)
            yield message
            if isinstance(message, DoneMessage):
                return


class CommandSender:
    """Application end of the command channel. Never blocks."""

    def __init__(self, channel: queue.SimpleQueue):
        self._channel = channel

    def send(self, command: Command) -> None:
        self._channel.put(Command(command))

    def cancel(self) -> None:
        """Request cancellation. Safe to repeat, or to call after the job ended."""
        self.send(Command.CANCEL)


class CommandReceiver:
    """Converter end of the command channel."""

    def __init__(self, channel: queue.SimpleQueue):
        self._channel = channel

    def recv(self) -> Command | _ProcessExited:
        """Block until a command arrives or the process exit is signalled."""
        return self._channel.get()

    def notify_process_exited(self) -> None:
        self._channel.put(PROCESS_EXITED)


def new_channels() -> tuple[MessageSender, MessageReceiver, CommandSender, CommandReceiver]:
    """Create the message and command channels for one job."""
    messages: queue.SimpleQueue = queue.SimpleQueue()
    commands: queue.SimpleQueue = queue.SimpleQueue()
    return (
        MessageSender(messages),
        MessageReceiver(messages),
        CommandSender(commands),
        CommandReceiver(commands),
    )
