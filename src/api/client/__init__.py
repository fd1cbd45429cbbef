"""Python SDK for the Tearoom session and realtime APIs."""

from client.exceptions import (
    ApiError,
    ClientError,
    NotAuthenticatedError,
    ReconnectExhaustedError,
    SessionExpiredError,
)
from client.realtime_client import ConnectionState, RealtimeClient
from client.session_client import SessionClient
from client.token_store import (
    InMemoryTokenStore,
    JsonFileTokenStore,
    StoredTokens,
    TokenStore,
)

__all__ = [
    "ApiError",
    "ClientError",
    "ConnectionState",
    "InMemoryTokenStore",
    "JsonFileTokenStore",
    "NotAuthenticatedError",
    "RealtimeClient",
    "ReconnectExhaustedError",
    "SessionClient",
    "SessionExpiredError",
    "StoredTokens",
    "TokenStore",
]
