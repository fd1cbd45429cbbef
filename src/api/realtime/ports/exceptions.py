"""Exceptions for the realtime bounded context."""

from realtime.domain.value_objects import CloseCode


class RealtimeError(Exception):
    """Base class for realtime failures."""

    pass


class ConnectionRejectedError(RealtimeError):
    """Raised when a connection is refused at the handshake.

    The transport has already been closed with ``code`` when this is raised.
    """

    def __init__(self, message: str, code: int = CloseCode.UNAUTHORIZED):
        super().__init__(message)
        self.code = code


class ChannelAccessDeniedError(RealtimeError):
    """Raised when a connection may not join a channel."""

    pass


class InvalidChannelKeyError(RealtimeError):
    """Raised when a client names a channel that cannot exist."""

    pass
