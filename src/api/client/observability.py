"""Domain probe for the client SDK.

Records session refreshes and realtime connection transitions so that
applications embedding the SDK can see why a user was signed out or why
live updates stopped.
"""

from __future__ import annotations

from typing import Protocol

import structlog


class ClientProbe(Protocol):
    """Domain probe for client session and realtime operations."""

    def session_stored(self, user_id: str | None) -> None:
        """Record that a new pair was saved after login."""
        ...

    def session_refreshed(self) -> None:
        """Record that the pair was rotated."""
        ...

    def session_refresh_shared(self) -> None:
        """Record that a caller reused a refresh done by another caller."""
        ...

    def session_expired(self, status_code: int) -> None:
        """Record that the refresh token was refused and the store cleared."""
        ...

    def session_cleared(self) -> None:
        """Record that the user logged out."""
        ...

    def session_logout_unconfirmed(self, error: str) -> None:
        """Record that the server could not be told about a logout."""
        ...

    def realtime_state_changed(self, previous: str, current: str) -> None:
        """Record a connection state transition."""
        ...

    def realtime_handshake_rejected(self, detail: str) -> None:
        """Record that the server refused the credentials on connect."""
        ...

    def realtime_reconnect_scheduled(
        self, attempt: int, delay_seconds: float, error: str
    ) -> None:
        """Record that a reconnect attempt will follow after a delay."""
        ...

    def realtime_message_discarded(self, reason: str) -> None:
        """Record that an incoming frame could not be interpreted."""
        ...


class DefaultClientProbe:
    """Default implementation of ClientProbe using structlog."""

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None):
        self._logger = logger or structlog.get_logger()

    def session_stored(self, user_id: str | None) -> None:
        self._logger.info("client_session_stored", user_id=user_id)

    def session_refreshed(self) -> None:
        self._logger.info("client_session_refreshed")

    def session_refresh_shared(self) -> None:
        self._logger.debug("client_session_refresh_shared")

    def session_expired(self, status_code: int) -> None:
        self._logger.warning("client_session_expired", status_code=status_code)

    def session_cleared(self) -> None:
        self._logger.info("client_session_cleared")

    def session_logout_unconfirmed(self, error: str) -> None:
        self._logger.warning("client_session_logout_unconfirmed", error=error)

    def realtime_state_changed(self, previous: str, current: str) -> None:
        self._logger.info(
            "client_realtime_state_changed", previous=previous, current=current
        )

    def realtime_handshake_rejected(self, detail: str) -> None:
        self._logger.warning("client_realtime_handshake_rejected", detail=detail)

    def realtime_reconnect_scheduled(
        self, attempt: int, delay_seconds: float, error: str
    ) -> None:
        self._logger.info(
            "client_realtime_reconnect_scheduled",
            attempt=attempt,
            delay_seconds=delay_seconds,
            error=error,
        )

    def realtime_message_discarded(self, reason: str) -> None:
        self._logger.debug("client_realtime_message_discarded", reason=reason)
