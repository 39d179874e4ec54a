# live_tracker/services/presence_hub/connection.py
"""
Обёртка над WebSocket-соединением клиента.
"""

from __future__ import annotations

from uuid import uuid4

from fastapi import WebSocket
from fastapi.websockets import WebSocketState

from live_tracker.common.constants import CloseCode
from live_tracker.common.logger import log_debug


class WebSocketConnection:
    """
    Транспортный дескриптор одного клиента.

    Хаб работает только с этим интерфейсом:
    connection_id, is_open, send_text(), close().
    """

    def __init__(self, websocket: WebSocket, connection_id: str | None = None) -> None:
        self.websocket = websocket
        self.connection_id = connection_id or uuid4().hex
        self._closed = False

    @property
    def is_open(self) -> bool:
        return (
            not self._closed
            and self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, data: str) -> None:
        await self.websocket.send_text(data)

    async def close(self, code: int = CloseCode.NORMAL, reason: str | None = None) -> None:
        """Закрыть соединение. Повторный вызов ничего не делает."""
        if self._closed:
            return
        self._closed = True
        try:
            await self.websocket.close(code=int(code), reason=reason)
        except Exception as e:
            # Клиент уже ушёл
            await log_debug(
                f"Соединение {self.connection_id} уже закрыто: {e}",
                extra={"connection_id": self.connection_id},
            )

    def mark_closed(self) -> None:
        """Отметить соединение закрытым клиентом."""
        self._closed = True

    def __repr__(self) -> str:
        return f"WebSocketConnection(id={self.connection_id!r}, open={self.is_open})"
