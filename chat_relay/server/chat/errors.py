"""
Errors raised by the connection registry and the broadcast dispatcher.
"""


class RelayError(Exception):
    """Base class for chat relay errors."""


class RegistrationFailed(RelayError):
    """A new connection could not be registered; the caller must close it."""


class ServerShuttingDown(RegistrationFailed):
    """The registry stopped accepting connections."""

    def __init__(self, message: str = "Server is shutting down"):
        super().__init__(message)


class SendFailed(RelayError):
    """A message could not be handed to a connection."""

    def __init__(self, conn_id: str, message: str):
        super().__init__(message)
        self.conn_id = conn_id


class QueueFull(SendFailed):
    """The connection's outbound queue is at capacity."""

    def __init__(self, conn_id: str):
        super().__init__(conn_id, f"Outbound queue full for id={conn_id}")


class TransportClosed(SendFailed):
    """The connection is no longer active or its transport is closed."""

    def __init__(self, conn_id: str):
        super().__init__(conn_id, f"Transport closed for id={conn_id}")
