"""Observability probes for identity application services."""

from identity.application.observability.session_service_probe import (
    DefaultSessionServiceProbe,
    SessionServiceProbe,
)
from identity.application.observability.token_service_probe import (
    DefaultTokenServiceProbe,
    TokenServiceProbe,
)

__all__ = [
    "DefaultSessionServiceProbe",
    "DefaultTokenServiceProbe",
    "SessionServiceProbe",
    "TokenServiceProbe",
]
