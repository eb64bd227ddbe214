class PortpeekError(Exception):
    """Base class for every error portpeek reports to the user."""


class InvalidPortError(PortpeekError, ValueError):
    """Raised when a port argument is not an integer in [1, 65535]."""

    def __init__(self, value: str, reason: str):
        super().__init__(f"Invalid port: {value!r} ({reason})")
        self.value = value
        self.reason = reason


class OSQueryError(PortpeekError):
    """Raised when the socket or process table cannot be read."""

    def __init__(self, message: str, hint: str | None = None):
        super().__init__(message)
        self.hint = hint
