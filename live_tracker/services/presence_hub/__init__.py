"""
Presence Hub — сервис присутствия и live-трансляции координат.

Обеспечивает:
- WebSocket соединения для клиентов
- Реестр сессий и последних локаций
- Рассылку списка пользователей и обновлений координат
- Rate limit по identity и фоновую уборку устаревших данных
"""

from live_tracker.services.presence_hub.hub import PresenceHub

__all__ = ["PresenceHub"]
