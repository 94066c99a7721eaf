"""Exception types raised by the orchestration core."""


class SessionError(RuntimeError):
    """Raised when a remote session request cannot be completed."""


class TransportError(SessionError):
    """The request never produced a usable HTTP response."""


class ProtocolError(SessionError):
    """The remote service answered with a non-success status or a malformed body."""

    def __init__(self, message: str, *, status_code: int | None = None, body=None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TunnelError(RuntimeError):
    """Raised when the tunnel connection misbehaves."""


class TunnelOpenError(TunnelError):
    """The tunnel could not be opened within its retry budget."""


class JobStateError(RuntimeError):
    """Raised when a job operation is invoked in a state that forbids it."""
