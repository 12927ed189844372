import logging
import socket
from typing import Type

from .byte_stream import ByteStream, SocketStream
from .errors import (
    TransportError,
    InvalidHandleError,
    ConnectionClosedError,
    SocketIOError,
    SocketWriteError,
    SocketReadError,
    WriteFailedError,
)
from .timeout import Timeout, DEFAULT_TIMEOUT
from .transport import Transport

MAX_WRITE_RETRIES = 10
# Upper bound on one get_line() result, terminator included. A line-read
# primitive with a C-style size argument would return one byte less.
MAX_LINE_LENGTH = 8192

# Matches what the server may pad a reply line with, NUL included.
_TRAILING_WHITESPACE = b" \t\n\r\0\x0b"


class StreamTransport(Transport):
    """Blocking write/read/line I/O over one exclusively owned byte stream.

    Once ``disconnect()`` has run every other operation raises
    ``ConnectionClosedError``. ``disconnect()`` may be called from another
    thread to abort an operation that is stuck waiting on the stream.
    """

    def __init__(
        self,
        handle: ByteStream,
        timeout: Timeout = DEFAULT_TIMEOUT,
        logger: logging.Logger | None = None,
    ) -> None:
        if not isinstance(handle, ByteStream):
            raise InvalidHandleError("A valid byte stream is required.")
        if handle.closed:
            raise InvalidHandleError("Cannot use a byte stream that is already closed.")

        handle.settimeout(None if timeout.is_unbounded else timeout.total_seconds)
        self._handle: ByteStream = handle
        self._timeout: Timeout = timeout
        self._logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_socket(
        cls,
        sock: socket.socket,
        timeout: Timeout = DEFAULT_TIMEOUT,
        logger: logging.Logger | None = None,
    ) -> "StreamTransport":
        return cls(SocketStream(sock), timeout, logger)

    @property
    def timeout(self) -> Timeout:
        return self._timeout

    @property
    def closed(self) -> bool:
        return self._handle.closed

    def __enter__(self) -> "StreamTransport":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.disconnect()

    def write(self, data: bytes) -> None:
        self._get_handle()

        remaining = memoryview(data)
        retries = 0
        while len(remaining) > 0 and retries < MAX_WRITE_RETRIES:
            handle = self._get_handle()
            try:
                written = handle.write(remaining)
            except (OSError, ValueError) as e:
                raise self._io_failure(e, SocketWriteError, "write") from e

            if not written:
                retries += 1
                self._logger.debug(
                    "Stream accepted no bytes (stall %d of %d).", retries, MAX_WRITE_RETRIES
                )
                continue
            remaining = remaining[written:]

        if len(remaining) > 0:
            self._logger.debug(
                "Giving up on write with %d of %d bytes unsent.", len(remaining), len(data)
            )
            raise WriteFailedError(
                f"Write failed: stream stalled {MAX_WRITE_RETRIES} times with "
                f"{len(remaining)} bytes unsent."
            )

    def read(self, length: int) -> bytes:
        if length < 0:
            raise ValueError("Read length cannot be negative.")
        self._get_handle()

        buffer = bytearray()
        remaining = length
        while remaining > 0:
            # No stall limit here: only the timeout or a disconnect ends a quiet stream.
            handle = self._get_handle()
            try:
                chunk = handle.read(remaining)
            except (OSError, ValueError) as e:
                raise self._io_failure(e, SocketReadError, "read") from e

            buffer += chunk
            remaining = length - len(buffer)

        return bytes(buffer)

    def get_line(self) -> str:
        handle = self._get_handle()
        try:
            line = handle.readline(MAX_LINE_LENGTH)
        except (OSError, ValueError) as e:
            raise self._io_failure(e, SocketReadError, "read") from e

        if handle.closed:
            raise ConnectionClosedError("The connection was closed.")
        if not line:
            raise SocketReadError("Connection closed by peer before a line was received.")

        try:
            return line.rstrip(_TRAILING_WHITESPACE).decode("utf-8")
        except UnicodeDecodeError as e:
            raise SocketReadError(f"Received a line that is not valid UTF-8: {e}") from e

    def disconnect(self) -> None:
        if not self._handle.closed:
            self._logger.debug("Closing byte stream.")
            self._handle.close()

    def _get_handle(self) -> ByteStream:
        if self._handle.closed:
            raise ConnectionClosedError("The connection was closed.")
        return self._handle

    def _io_failure(
        self, error: Exception, error_type: Type[SocketIOError], action: str
    ) -> TransportError:
        if self._handle.closed:
            return ConnectionClosedError("The connection was closed.")
        return error_type(f"Socket {action} failed: {error}", getattr(error, "errno", None))
