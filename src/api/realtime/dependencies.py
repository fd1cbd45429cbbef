"""Dependency injection for the realtime bounded context."""

from functools import lru_cache

from infrastructure.dependencies import get_access_token_codec
from infrastructure.settings import get_realtime_settings
from realtime.application import RealtimeHub
from realtime.application.observability import DefaultHubProbe
from realtime.domain import OverflowPolicy


@lru_cache
def get_realtime_hub() -> RealtimeHub:
    """Get the application-scoped hub (singleton).

    Every WebSocket endpoint and publisher in the process must share one
    hub, since channel membership lives in its memory.
    """
    settings = get_realtime_settings()
    return RealtimeHub(
        access_token_codec=get_access_token_codec(),
        queue_size=settings.queue_size,
        overflow_policy=OverflowPolicy(settings.overflow_policy),
        send_timeout_seconds=settings.send_timeout_seconds,
        probe=DefaultHubProbe(),
    )
