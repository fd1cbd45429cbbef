"""WebSocket endpoint for the realtime hub."""

from __future__ import annotations

import json
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from realtime.application import Connection, RealtimeHub
from realtime.dependencies import get_realtime_hub
from realtime.domain import CloseCode
from realtime.ports import (
    ChannelAccessDeniedError,
    ConnectionRejectedError,
    InvalidChannelKeyError,
)
from realtime.presentation.messages import parse_client_message

logger = structlog.get_logger()

router = APIRouter(
    prefix="/realtime",
    tags=["realtime"],
)


class WebSocketTransport:
    """Adapts a Starlette WebSocket to the hub's Transport port."""

    def __init__(self, websocket: WebSocket):
        self._websocket = websocket

    async def accept(self) -> None:
        await self._websocket.accept()

    async def send_json(self, message: dict[str, Any]) -> None:
        await self._websocket.send_json(message)

    async def close(self, code: int, reason: str = "") -> None:
        if self._websocket.application_state == WebSocketState.DISCONNECTED:
            return
        if self._websocket.client_state == WebSocketState.DISCONNECTED:
            return
        await self._websocket.close(code=code, reason=reason)


def _bearer_token(websocket: WebSocket, token: str | None) -> str | None:
    if token:
        return token
    header = websocket.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def _handle_message(hub: RealtimeHub, connection: Connection, raw: str) -> None:
    """Apply one client message; failures are reported, never fatal."""
    try:
        message = parse_client_message(json.loads(raw))
        key = hub.resolve_channel(connection, message.channel_name(), message.tenant_id)
        if message.is_leave:
            hub.leave(connection, key)
            hub.notify(connection, "left", {"channel": key.wire})
        else:
            hub.join(connection, key)
            hub.notify(
                connection, "joined", {"channel": key.wire, "tenantId": key.tenant_id}
            )
    except json.JSONDecodeError:
        hub.notify(connection, "error", {"message": "Invalid JSON"})
    except (InvalidChannelKeyError, ChannelAccessDeniedError) as e:
        hub.notify(connection, "error", {"message": str(e)})


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    hub: Annotated[RealtimeHub, Depends(get_realtime_hub)],
    token: Annotated[str | None, Query()] = None,
) -> None:
    """Authenticated order-event stream.

    The access token comes from the ``token`` query parameter (browsers
    cannot set headers on WebSocket requests) or an Authorization header.
    A connection starts with no channels; clients join after every
    (re)connect.
    """
    try:
        connection = await hub.connect(
            _bearer_token(websocket, token), WebSocketTransport(websocket)
        )
    except ConnectionRejectedError:
        return

    code = CloseCode.NORMAL
    try:
        while True:
            raw = await websocket.receive_text()
            _handle_message(hub, connection, raw)
            if connection.is_closed:
                return
    except WebSocketDisconnect as e:
        code = e.code
    except Exception:
        logger.exception("realtime_socket_error", connection_id=connection.id)
        code = CloseCode.INTERNAL_ERROR
    finally:
        await hub.disconnect(connection, code)
