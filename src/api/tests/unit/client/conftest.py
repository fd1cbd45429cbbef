"""Fixtures for client SDK unit tests."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import create_autospec

import httpx
import pytest
import pytest_asyncio

from client import InMemoryTokenStore, SessionClient
from client.observability import ClientProbe

USER = {"id": "01J9PRINCIPAL000000000000A", "email": "manager@kitchen7.example"}


def _ok(data: dict) -> httpx.Response:
    return httpx.Response(200, json={"success": True, "data": data})


def _unauthorized(message: str) -> httpx.Response:
    return httpx.Response(401, json={"success": False, "message": message})


class FakeApi:
    """In-memory stand-in for the session endpoints.

    Refresh tokens are single-use like the real server: presenting a
    rotated one fails.
    """

    def __init__(self):
        self.generation = 0
        self.refresh_calls = 0
        self.refresh_status: int | None = None
        self.reject_all_access = False
        self.unreachable = False
        self.logged_out: list[str] = []
        self.requests: list[httpx.Request] = []
        self._access: set[str] = set()
        self._refresh: str | None = None

    def expire_access_tokens(self) -> None:
        self._access.clear()

    def revoke_session(self) -> None:
        self._refresh = None

    def _issue(self) -> dict:
        self.generation += 1
        access, refresh = f"a{self.generation}", f"r{self.generation}"
        self._access.add(access)
        self._refresh = refresh
        return {"accessToken": access, "refreshToken": refresh, "expiresIn": 900}

    def _authorized(self, request: httpx.Request) -> bool:
        if self.reject_all_access:
            return False
        header = request.headers.get("authorization", "")
        return header.removeprefix("Bearer ") in self._access

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        body = json.loads(request.content) if request.content else {}
        path = request.url.path

        if path in ("/auth/login", "/auth/super-admin/login"):
            if body.get("password") != "steeped-oolong-42":
                return _unauthorized("Invalid credentials")
            return _ok({**self._issue(), "user": USER})
        if path == "/auth/refresh":
            self.refresh_calls += 1
            await asyncio.sleep(0)
            if self.refresh_status is not None:
                return httpx.Response(
                    self.refresh_status,
                    json={"success": False, "message": "Service unavailable"},
                )
            if body.get("refreshToken") != self._refresh:
                return _unauthorized("Refresh token has been revoked")
            return _ok(self._issue())
        if path == "/auth/logout":
            self.logged_out.append(body.get("refreshToken"))
            self._refresh = None
            return httpx.Response(200, json={"success": True})
        if not self._authorized(request):
            return _unauthorized("Invalid or expired token")
        if path == "/auth/me":
            return _ok(USER)
        if path == "/auth/logout-all":
            self._refresh = None
            return httpx.Response(200, json={"success": True})
        return httpx.Response(404, json={"success": False, "message": "Not found"})


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def client_probe():
    return create_autospec(ClientProbe, instance=True)


@pytest.fixture
def token_store():
    return InMemoryTokenStore()


@pytest_asyncio.fixture
async def session_client(api, token_store, client_probe):
    client = SessionClient(
        "http://tearoom.test",
        token_store,
        transport=httpx.MockTransport(api),
        probe=client_probe,
    )
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def signed_in(session_client):
    await session_client.login(
        "manager@kitchen7.example", "steeped-oolong-42", tenant_slug="kitchen-7"
    )
    return session_client
