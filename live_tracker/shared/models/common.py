# live_tracker/shared/models/common.py
"""
Общие модели HTTP-ответов.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthStatus(BaseModel):
    """Статус здоровья сервиса."""

    service: str
    status: str = "healthy"  # healthy, degraded, unhealthy
    version: str | None = None
    uptime_seconds: float | None = None
    details: dict[str, int] = Field(default_factory=dict)


class StatsResponse(BaseModel):
    """Статистика хаба."""

    sessions: int
    stored_locations: int
    active_locations: int
    rate_windows: int
    active_connections: int
    total_connections_ever: int
    total_messages_sent: int
    total_send_failures: int
