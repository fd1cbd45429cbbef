"""Fixtures for realtime unit tests."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import create_autospec

import pytest
import pytest_asyncio

from realtime.application import RealtimeHub
from realtime.application.observability import HubProbe
from shared_kernel.auth import PrincipalRole

TENANT = "01J9TENANT0000000000000001"
OTHER_TENANT = "01J9TENANT0000000000000002"


class FakeTransport:
    """Records what the hub does to one client socket."""

    def __init__(self, fail_send: Exception | None = None, block_send: bool = False):
        self.accepted = False
        self.sent: list[dict[str, Any]] = []
        self.closed: list[tuple[int, str]] = []
        self._fail_send = fail_send
        self._block_send = block_send

    @property
    def events(self) -> list[str]:
        return [message["event"] for message in self.sent]

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, message: dict[str, Any]) -> None:
        if self._fail_send is not None:
            raise self._fail_send
        if self._block_send:
            await asyncio.Event().wait()
        self.sent.append(message)

    async def close(self, code: int, reason: str = "") -> None:
        self.closed.append((code, reason))


@pytest.fixture
def make_transport():
    return FakeTransport


@pytest.fixture
def settle():
    """Let sender tasks run until the loop is idle."""

    async def _settle(rounds: int = 20) -> None:
        for _ in range(rounds):
            await asyncio.sleep(0)

    return _settle


@pytest.fixture
def hub_probe():
    return create_autospec(HubProbe, instance=True)


@pytest_asyncio.fixture
async def hub(access_token_codec, hub_probe):
    hub = RealtimeHub(
        access_token_codec=access_token_codec,
        queue_size=8,
        send_timeout_seconds=1.0,
        probe=hub_probe,
    )
    yield hub
    await hub.close_all()


@pytest.fixture
def token_for(access_token_codec):
    """Sign an access token for a principal."""

    def _token(
        role: PrincipalRole = PrincipalRole.TENANT_USER,
        tenant_id: str | None = TENANT,
        kitchen_id: str | None = None,
        principal_id: str = "01J9PRINCIPAL000000000000A",
    ) -> str:
        token, _ = access_token_codec.issue(
            principal_id=principal_id,
            tenant_id=tenant_id,
            role=role,
            kitchen_id=kitchen_id,
        )
        return token

    return _token
