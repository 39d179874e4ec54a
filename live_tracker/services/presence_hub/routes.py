# live_tracker/services/presence_hub/routes.py
"""
Маршруты хаба.

WebSocket:
- /ws — единственная точка подключения клиентов

REST:
- GET /health — проверка здоровья
- GET /stats — статистика хаба
"""

from __future__ import annotations

import time

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect

from live_tracker.common.logger import log_debug, log_error
from live_tracker.config import settings
from live_tracker.services.presence_hub.connection import WebSocketConnection
from live_tracker.services.presence_hub.dependencies import get_hub
from live_tracker.services.presence_hub.hub import PresenceHub
from live_tracker.shared.models.common import HealthStatus, StatsResponse

router = APIRouter()


@router.get("/health", response_model=HealthStatus, tags=["Health"])
async def health_check(request: Request, hub: PresenceHub = Depends(get_hub)) -> HealthStatus:
    """Проверка здоровья сервиса."""
    started_at = getattr(request.app.state, "started_at", None)
    return HealthStatus(
        service="presence_hub",
        status="healthy",
        version=settings.system.VERSION,
        uptime_seconds=round(time.monotonic() - started_at, 3) if started_at is not None else None,
        details={"sessions": hub.sessions.count()},
    )


@router.get("/stats", response_model=StatsResponse, tags=["Stats"])
async def get_stats(hub: PresenceHub = Depends(get_hub)) -> StatsResponse:
    """Получить статистику хаба."""
    return StatsResponse(**hub.get_stats())


@router.websocket("/ws")
async def presence_socket(websocket: WebSocket) -> None:
    """
    WebSocket клиента.

    Входящие сообщения:
    - {"type": "register", "userId": "...", "name": "..."}
    - {"type": "location_update", "userId": "...", "lat": 53.55, "lng": 10.0}
    - {"type": "stop_sharing"}
    - {"type": "track_user", "targetUserId": "..."}
    - {"type": "ping"}
    """
    hub: PresenceHub = websocket.app.state.hub

    await websocket.accept()
    connection = WebSocketConnection(websocket)
    await hub.connect(connection)

    try:
        while connection.is_open:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            if message.get("text") is not None:
                await hub.handle_raw(connection, message["text"])
            elif message.get("bytes") is not None:
                await hub.handle_raw(connection, message["bytes"])

    except WebSocketDisconnect:
        await log_debug(f"Клиент закрыл соединение: {connection.connection_id}")
    except Exception as e:
        await log_error(
            f"Ошибка транспорта {connection.connection_id}: {e}",
            extra={"connection_id": connection.connection_id},
            exc_info=True,
        )
    finally:
        connection.mark_closed()
        await hub.disconnect(connection)
