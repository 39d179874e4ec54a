# live_tracker/services/presence_hub/dependencies.py
"""
Зависимости FastAPI для хаба.
"""

from __future__ import annotations

from fastapi import Request

from live_tracker.services.presence_hub.hub import PresenceHub


def get_hub(request: Request) -> PresenceHub:
    """Экземпляр хаба, принадлежащий приложению."""
    hub = getattr(request.app.state, "hub", None)
    if hub is None:
        raise RuntimeError("Hub not initialized")
    return hub
