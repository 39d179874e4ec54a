# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any
from uuid import uuid4

import pytest
import pytest_asyncio

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("LOG_LEVEL", "WARNING")

from live_tracker.config.loader import HubSettings
from live_tracker.services.presence_hub.hub import PresenceHub


# =============================================================================
# ТЕСТОВЫЕ ДУБЛИ
# =============================================================================

class FakeClock:
    """Управляемые часы в миллисекундах."""

    def __init__(self, now: int = 1_700_000_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeConnection:
    """Соединение, записывающее отправленные сообщения."""

    def __init__(self, connection_id: str | None = None, fail_send: bool = False) -> None:
        self.connection_id = connection_id or uuid4().hex
        self.fail_send = fail_send
        self.sent: list[dict[str, Any]] = []
        self.raw_sent: list[str] = []
        self.closed_with: tuple[int, str | None] | None = None
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open

    async def send_text(self, data: str) -> None:
        if self.fail_send:
            raise ConnectionResetError("peer gone")
        self.raw_sent.append(data)
        self.sent.append(json.loads(data))

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        if not self._open:
            return
        self._open = False
        self.closed_with = (int(code), reason)

    def of_type(self, message_type: str) -> list[dict[str, Any]]:
        return [m for m in self.sent if m["type"] == message_type]

    def clear(self) -> None:
        self.sent.clear()
        self.raw_sent.clear()


# =============================================================================
# ФИКСТУРЫ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def hub_settings() -> HubSettings:
    return HubSettings(
        REGISTRATION_TIMEOUT=30,
        LOCATION_TTL=300,
        JANITOR_INTERVAL=60,
        RATE_LIMIT_WINDOW_MS=1000,
        RATE_LIMIT_MAX_REQUESTS=10,
        MAX_SESSIONS=100,
    )


@pytest_asyncio.fixture
async def hub(hub_settings: HubSettings, clock: FakeClock):
    presence_hub = PresenceHub(hub_settings, clock=clock)
    yield presence_hub
    await presence_hub.shutdown()


@pytest.fixture
def make_connection():
    def _make(connection_id: str | None = None, fail_send: bool = False) -> FakeConnection:
        return FakeConnection(connection_id, fail_send=fail_send)
    return _make
