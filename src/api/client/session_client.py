"""HTTP session client for the Tearoom API.

Keeps the token pair in a TokenStore, attaches the access token to every
request and recovers from an expired access token with exactly one
refresh followed by one retry. Concurrent requests that hit a 401 at the
same time share a single refresh: the refresh token is single-use, so a
second rotation of the same secret would be treated as token reuse by
the server and revoke the whole session.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from client.exceptions import (
    ApiError,
    NotAuthenticatedError,
    SessionExpiredError,
)
from client.observability import ClientProbe, DefaultClientProbe
from client.token_store import InMemoryTokenStore, StoredTokens, TokenStore


class SessionClient:
    """Authenticated HTTP client.

    Example:
        async with SessionClient("https://api.example.com") as client:
            await client.login("owner@k7.example", "secret", tenant_slug="k7")
            response = await client.request("GET", "/auth/me")
    """

    def __init__(
        self,
        base_url: str,
        store: TokenStore | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
        probe: ClientProbe | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Root URL of the API
            store: Where the token pair lives; defaults to memory
            transport: Optional httpx transport, e.g. for an in-process app
            timeout: Per-request timeout in seconds
            probe: Optional domain probe for observability
        """
        self._store = store or InMemoryTokenStore()
        self._http = httpx.AsyncClient(
            base_url=base_url, transport=transport, timeout=timeout
        )
        self._probe = probe or DefaultClientProbe()
        self._refresh_lock = asyncio.Lock()

    @property
    def store(self) -> TokenStore:
        return self._store

    @property
    def is_authenticated(self) -> bool:
        return self._store.load() is not None

    def current_access_token(self) -> str:
        """Return the stored access token.

        Raises:
            NotAuthenticatedError: If no session is stored
        """
        tokens = self._store.load()
        if tokens is None:
            raise NotAuthenticatedError("No session stored")
        return tokens.access_token

    async def login(
        self, email: str, password: str, tenant_slug: str | None = None
    ) -> dict[str, Any]:
        """Sign in to a tenant and store the issued pair.

        Returns:
            The signed-in user as returned by the API

        Raises:
            ApiError: If the credentials are refused
        """
        body: dict[str, Any] = {"email": email, "password": password}
        if tenant_slug is not None:
            body["tenantSlug"] = tenant_slug
        return await self._start_session("/auth/login", body)

    async def login_super_admin(self, email: str, password: str) -> dict[str, Any]:
        """Sign in as a platform super admin and store the issued pair."""
        return await self._start_session(
            "/auth/super-admin/login", {"email": email, "password": password}
        )

    async def refresh(self) -> StoredTokens:
        """Rotate the stored pair.

        Raises:
            NotAuthenticatedError: If no session is stored
            SessionExpiredError: If the server refused the refresh token
            ApiError: If the server could not complete the refresh
        """
        return await self._refresh(stale_access_token=None)

    async def logout(self) -> None:
        """Forget the session locally and revoke it on the server.

        The local store is cleared first, so the client is signed out even
        when the server cannot be reached.
        """
        tokens = self._store.load()
        self._store.clear()
        self._probe.session_cleared()
        if tokens is None:
            return
        try:
            await self._http.post(
                "/auth/logout", json={"refreshToken": tokens.refresh_token}
            )
        except httpx.HTTPError as e:
            self._probe.session_logout_unconfirmed(error=str(e))

    async def logout_all(self) -> None:
        """Revoke every session of the signed-in user, then forget ours."""
        response = await self.request("POST", "/auth/logout-all")
        _unwrap(response)
        self._store.clear()
        self._probe.session_cleared()

    async def me(self) -> dict[str, Any]:
        """Fetch the signed-in user."""
        response = await self.request("GET", "/auth/me")
        return _unwrap(response)

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send an authenticated request.

        On a 401 the pair is refreshed once and the request retried once.

        Raises:
            NotAuthenticatedError: If no session is stored
            SessionExpiredError: If the session could not be recovered
        """
        tokens = self._store.load()
        if tokens is None:
            raise NotAuthenticatedError("No session stored")

        response = await self._send(method, url, tokens.access_token, kwargs)
        if response.status_code != 401:
            return response

        fresh = await self._refresh(stale_access_token=tokens.access_token)
        response = await self._send(method, url, fresh.access_token, kwargs)
        if response.status_code == 401:
            self._store.clear()
            self._probe.session_expired(status_code=401)
            raise SessionExpiredError("Session was rejected after refresh")
        return response

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> SessionClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _start_session(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        response = await self._http.post(path, json=body)
        data = _unwrap(response)
        user = data.get("user")
        self._store.save(
            StoredTokens(
                access_token=data["accessToken"],
                refresh_token=data["refreshToken"],
                user=user,
            )
        )
        self._probe.session_stored(user_id=user.get("id") if user else None)
        return user or {}

    async def _refresh(self, stale_access_token: str | None) -> StoredTokens:
        async with self._refresh_lock:
            current = self._store.load()
            if current is None:
                raise NotAuthenticatedError("No session stored")
            if (
                stale_access_token is not None
                and current.access_token != stale_access_token
            ):
                # Another caller rotated while we waited for the lock
                self._probe.session_refresh_shared()
                return current

            response = await self._http.post(
                "/auth/refresh", json={"refreshToken": current.refresh_token}
            )
            if response.status_code == 401:
                self._store.clear()
                self._probe.session_expired(status_code=401)
                raise SessionExpiredError(_message(response))

            data = _unwrap(response)
            fresh = current.with_pair(data["accessToken"], data["refreshToken"])
            self._store.save(fresh)
            self._probe.session_refreshed()
            return fresh

    async def _send(
        self, method: str, url: str, access_token: str, kwargs: dict[str, Any]
    ) -> httpx.Response:
        options = dict(kwargs)
        headers = dict(options.pop("headers", None) or {})
        headers["Authorization"] = f"Bearer {access_token}"
        return await self._http.request(method, url, headers=headers, **options)


def _message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


def _unwrap(response: httpx.Response) -> dict[str, Any]:
    """Return the ``data`` member of a success envelope.

    Raises:
        ApiError: If the response is not a success
    """
    if not response.is_success:
        raise ApiError(_message(response), response.status_code)
    body = response.json()
    data = body.get("data") if isinstance(body, dict) else None
    return data if isinstance(data, dict) else {}
