"""Exceptions raised by the client SDK."""


class ClientError(Exception):
    """Base class for client SDK failures."""

    pass


class ApiError(ClientError):
    """Raised when the API answers with an error envelope.

    Attributes:
        status_code: HTTP status of the response.
    """

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class NotAuthenticatedError(ClientError):
    """Raised when a call needs a session but none is stored."""

    pass


class SessionExpiredError(ClientError):
    """Raised when the session could not be refreshed.

    Stored credentials have been cleared; the user must log in again.
    """

    pass


class ReconnectExhaustedError(ClientError):
    """Raised when the realtime client ran out of reconnect attempts."""

    pass
