class StalkpyError(Exception):
    """Base exception for the stalkpy library."""
    pass

# --- Transport Errors ---

class TransportError(StalkpyError):
    """A generic error occurred in the transport layer."""
    pass

class InvalidHandleError(TransportError): pass
class ConnectionClosedError(TransportError): pass

class SocketIOError(TransportError):
    """The underlying stream reported a hard error.

    ``code`` carries the OS error number when one was available.
    """
    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code

class SocketWriteError(SocketIOError): pass
class SocketReadError(SocketIOError): pass

class WriteFailedError(TransportError):
    """The stream kept accepting zero bytes until the retry budget ran out."""
    pass
