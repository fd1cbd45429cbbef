"""Domain-Oriented Observability for the realtime hub."""

from realtime.application.observability.hub_probe import DefaultHubProbe, HubProbe

__all__ = ["DefaultHubProbe", "HubProbe"]
