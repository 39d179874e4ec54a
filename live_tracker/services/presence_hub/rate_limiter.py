# live_tracker/services/presence_hub/rate_limiter.py
"""
Rate limiter со скользящим окном по identity.
"""

from __future__ import annotations


class RateLimiter:
    """
    Считает принятые запросы identity в окне [now - window_ms, now].

    Отклонённая попытка в окно не записывается.
    """

    def __init__(self, window_ms: int = 1000, max_requests: int = 10) -> None:
        self.window_ms = window_ms
        self.max_requests = max_requests
        # identity -> отсортированные метки принятых запросов
        self._windows: dict[str, list[int]] = {}

    def __len__(self) -> int:
        return len(self._windows)

    def _recent(self, identity: str, now: int) -> list[int]:
        window_start = now - self.window_ms
        return [ts for ts in self._windows.get(identity, ()) if window_start <= ts <= now]

    def allow(self, identity: str, now: int) -> bool:
        """
        Проверить и учесть запрос.

        Returns:
            True если запрос принят
        """
        recent = self._recent(identity, now)
        if len(recent) >= self.max_requests:
            self._windows[identity] = recent
            return False

        recent.append(now)
        self._windows[identity] = recent
        return True

    def prune(self, now: int) -> int:
        """
        Отфильтровать все окна, пустые удалить.

        Returns:
            Количество удалённых окон
        """
        removed = 0
        for identity in list(self._windows):
            recent = self._recent(identity, now)
            if recent:
                self._windows[identity] = recent
            else:
                del self._windows[identity]
                removed += 1
        return removed
