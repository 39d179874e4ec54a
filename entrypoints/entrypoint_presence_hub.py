#!/usr/bin/env python3
"""
Entrypoint для Presence Hub.

Запуск:
    python entrypoints/entrypoint_presence_hub.py

Порт по умолчанию: 3000 (переопределяется переменной PORT)
"""

import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from live_tracker.config import settings


def main() -> None:
    """Запустить Presence Hub."""
    uvicorn.run(
        "live_tracker.services.presence_hub.app:app",
        host=settings.deployment.PRESENCE_HUB_HOST,
        port=settings.deployment.PRESENCE_HUB_PORT,
        reload=settings.system.DEBUG,
        log_level=settings.system.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
