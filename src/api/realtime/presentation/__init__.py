"""Realtime presentation layer."""

from realtime.presentation.websocket import router

__all__ = ["router"]
