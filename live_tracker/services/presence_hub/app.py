# live_tracker/services/presence_hub/app.py
"""
FastAPI приложение Presence Hub.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI

from live_tracker.common.constants import TypeMsg
from live_tracker.common.logger import log_info, setup_logging
from live_tracker.config import settings
from live_tracker.services.presence_hub.hub import PresenceHub
from live_tracker.services.presence_hub.routes import router


def create_app(hub: PresenceHub | None = None) -> FastAPI:
    """
    Собрать приложение вокруг экземпляра хаба.

    Args:
        hub: Готовый хаб (в тестах); по умолчанию создаётся из settings.hub
    """
    presence_hub = hub or PresenceHub(settings.hub)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Жизненный цикл приложения."""
        setup_logging()
        app.state.started_at = time.monotonic()
        await presence_hub.janitor.start()
        await log_info("Presence Hub запущен", type_msg=TypeMsg.INFO)

        yield

        await presence_hub.janitor.stop()
        await presence_hub.shutdown()
        await log_info("Presence Hub остановлен", type_msg=TypeMsg.INFO)

    app = FastAPI(
        title="Presence Hub",
        description="WebSocket хаб присутствия и live-трансляции координат.",
        version=settings.system.VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.hub = presence_hub
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=settings.deployment.PRESENCE_HUB_HOST,
        port=settings.deployment.PRESENCE_HUB_PORT,
    )
