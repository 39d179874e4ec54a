# live_tracker/services/presence_hub/locations.py
"""
Хранилище последних известных координат.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Location:
    """Последняя позиция пользователя."""
    user_id: str
    lat: float
    lng: float
    name: str
    timestamp: int

    def age(self, now: int) -> int:
        return now - self.timestamp

    def is_active(self, now: int, ttl_ms: int) -> bool:
        """Локация свежая, если её возраст строго меньше TTL."""
        return self.age(now) < ttl_ms


def _parse_number(value: Any) -> float | None:
    """Число или числовая строка → конечный float."""
    # bool является подклассом int, но не координатой
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def parse_coordinates(lat: Any, lng: Any) -> tuple[float, float] | None:
    """
    Разобрать и проверить пару координат.

    Returns:
        (lat, lng) или None, если координаты невалидны
    """
    parsed_lat = _parse_number(lat)
    parsed_lng = _parse_number(lng)
    if parsed_lat is None or parsed_lng is None:
        return None
    if not (-90 <= parsed_lat <= 90 and -180 <= parsed_lng <= 180):
        return None
    return parsed_lat, parsed_lng


def is_valid(lat: Any, lng: Any) -> bool:
    """Валидация координат."""
    return parse_coordinates(lat, lng) is not None


class LocationStore:
    """
    identity → последняя Location.

    Устаревшие записи (возраст ≥ TTL) не отдаются при чтении
    и физически удаляются уборщиком.
    """

    def __init__(self) -> None:
        self._locations: dict[str, Location] = {}

    def __len__(self) -> int:
        return len(self._locations)

    def __contains__(self, identity: object) -> bool:
        return identity in self._locations

    def upsert(self, identity: str, lat: float, lng: float, name: str, now: int) -> Location:
        location = Location(user_id=identity, lat=lat, lng=lng, name=name, timestamp=now)
        self._locations[identity] = location
        return location

    def remove(self, identity: str) -> bool:
        """Удалить локацию. Возвращает True, если она была."""
        return self._locations.pop(identity, None) is not None

    def get(self, identity: str) -> Location | None:
        return self._locations.get(identity)

    def get_active(self, identity: str, now: int, ttl_ms: int) -> Location | None:
        """Локация, только если она не устарела."""
        location = self._locations.get(identity)
        if location is None or not location.is_active(now, ttl_ms):
            return None
        return location

    def active_snapshot(self, now: int, ttl_ms: int) -> list[Location]:
        return [loc for loc in self._locations.values() if loc.is_active(now, ttl_ms)]

    def purge_stale(self, now: int, ttl_ms: int) -> list[str]:
        """
        Удалить локации старше TTL.

        Returns:
            Список удалённых identity
        """
        stale = [uid for uid, loc in self._locations.items() if loc.age(now) > ttl_ms]
        for uid in stale:
            del self._locations[uid]
        return stale
