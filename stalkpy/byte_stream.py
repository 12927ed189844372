import socket
from typing import Protocol, runtime_checkable

from .errors import InvalidHandleError


@runtime_checkable
class ByteStream(Protocol):
    """The handle a StreamTransport drives.

    ``write`` returns the number of bytes accepted, where 0 (or None) is a
    stall rather than an error. ``read`` and ``readline`` return ``b""`` when
    nothing arrived. Hard failures are raised as ``OSError``.
    """

    @property
    def closed(self) -> bool:
        ...

    def write(self, data: bytes) -> int | None:
        ...

    def read(self, size: int) -> bytes:
        ...

    def readline(self, limit: int) -> bytes:
        ...

    def settimeout(self, seconds: float | None) -> None:
        ...

    def close(self) -> None:
        ...


class SocketStream:
    """Expose a connected stream socket as a ByteStream.

    Line and length reads share one receive buffer, so bytes received past
    the end of a line are handed out by the next ``read`` or ``readline``.
    """
    _RECV_CHUNK = 4096

    def __init__(self, sock: socket.socket) -> None:
        if not isinstance(sock, socket.socket):
            raise InvalidHandleError("A connected socket is required.")
        if sock.fileno() == -1:
            raise InvalidHandleError("Cannot wrap a closed socket.")
        if sock.type != socket.SOCK_STREAM:
            raise InvalidHandleError("Only stream sockets can be wrapped.")

        self._sock: socket.socket = sock
        self._buffer: bytearray = bytearray()
        self._closed: bool = False

    @property
    def closed(self) -> bool:
        return self._closed or self._sock.fileno() == -1

    def write(self, data: bytes) -> int:
        return self._sock.send(data)

    def read(self, size: int) -> bytes:
        if self._buffer:
            chunk = bytes(self._buffer[:size])
            del self._buffer[:size]
            return chunk

        chunk = self._sock.recv(size)
        if not chunk and size > 0:
            # The socket always blocks, so an empty recv() means end of stream.
            raise ConnectionResetError("Connection closed by peer")
        return chunk

    def readline(self, limit: int) -> bytes:
        while True:
            newline_pos = self._buffer.find(b"\n", 0, limit)
            if newline_pos != -1:
                end = newline_pos + 1
                break

            if len(self._buffer) >= limit:
                end = limit
                break

            chunk = self._sock.recv(self._RECV_CHUNK)
            if not chunk:
                end = len(self._buffer)
                break
            self._buffer += chunk

        line = bytes(self._buffer[:end])
        del self._buffer[:end]
        return line

    def settimeout(self, seconds: float | None) -> None:
        self._sock.settimeout(seconds)

    def close(self) -> None:
        if self._closed:
            return

        self._closed = True
        try:
            # Wakes any thread blocked in recv() on this socket.
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Peer already gone.
        finally:
            self._sock.close()
            self._buffer.clear()
