# live_tracker/services/presence_hub/janitor.py
"""
Периодическая уборка устаревших локаций и окон rate-limit.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from live_tracker.common.clock import Clock, now_ms
from live_tracker.common.constants import TypeMsg
from live_tracker.common.logger import log_error, log_info
from live_tracker.services.presence_hub.locations import LocationStore
from live_tracker.services.presence_hub.rate_limiter import RateLimiter


@dataclass
class SweepResult:
    """Итог одного прохода уборщика."""
    locations_removed: list[str] = field(default_factory=list)
    rate_windows_removed: int = 0


class Janitor:
    """
    Фоновая задача, независимая от трафика клиентов.

    Раз в interval секунд удаляет локации старше TTL (без рассылки
    location_stop) и чистит окна rate limiter.
    """

    def __init__(
        self,
        locations: LocationStore,
        rate_limiter: RateLimiter,
        *,
        ttl_ms: int,
        interval: float,
        lock: asyncio.Lock | None = None,
        clock: Clock = now_ms,
    ) -> None:
        self._locations = locations
        self._rate_limiter = rate_limiter
        self._ttl_ms = ttl_ms
        self._interval = interval
        self._lock = lock or asyncio.Lock()
        self._clock = clock
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def sweep(self, now: int | None = None) -> SweepResult:
        """Один проход уборки."""
        if now is None:
            now = self._clock()

        async with self._lock:
            result = SweepResult(
                locations_removed=self._locations.purge_stale(now, self._ttl_ms),
                rate_windows_removed=self._rate_limiter.prune(now),
            )

        if result.locations_removed or result.rate_windows_removed:
            await log_info(
                f"Уборка: удалено локаций {len(result.locations_removed)}, "
                f"окон rate-limit {result.rate_windows_removed}",
                type_msg=TypeMsg.DEBUG,
                extra={"expired": result.locations_removed},
            )
        return result

    async def start(self) -> None:
        """Запускает уборщик."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run(), name="presence-janitor")
        await log_info(f"Уборщик запущен (интервал {self._interval} с)", type_msg=TypeMsg.INFO)

    async def stop(self) -> None:
        """Останавливает уборщик."""
        if not self._running:
            return

        self._running = False
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None

        await log_info("Уборщик остановлен", type_msg=TypeMsg.INFO)

    async def _run(self) -> None:
        while self._running:
            await asyncio.sleep(self._interval)
            try:
                await self.sweep()
            except Exception as e:
                await log_error(f"Ошибка в уборщике: {e}", exc_info=True)
