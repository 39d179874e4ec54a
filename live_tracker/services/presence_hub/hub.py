# live_tracker/services/presence_hub/hub.py
"""
Хаб присутствия: протокол соединения поверх реестра сессий,
хранилища локаций, rate limiter и рассылки.

Жизненный цикл соединения:
    connect() → Unregistered (таймер регистрации)
    register  → Registered
    disconnect() / таймаут / лимит / shutdown → Closed
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from live_tracker.common.clock import Clock, now_ms
from live_tracker.common.constants import (
    ERR_CAPACITY,
    ERR_INTERNAL,
    ERR_INVALID_FORMAT,
    ERR_INVALID_JSON,
    ERR_INVALID_LOCATION,
    ERR_INVALID_USER_ID,
    ERR_MISSING_TARGET,
    ERR_NOT_REGISTERED,
    ERR_RATE_LIMIT,
    REASON_CAPACITY,
    REASON_REGISTRATION_TIMEOUT,
    REASON_SHUTDOWN,
    WELCOME_TEXT,
    CloseCode,
    ConnectionState,
    InboundType,
    TypeMsg,
)
from live_tracker.common.logger import log_debug, log_error, log_info, log_warning
from live_tracker.config.loader import HubSettings
from live_tracker.services.presence_hub.broadcaster import Broadcaster
from live_tracker.services.presence_hub.janitor import Janitor
from live_tracker.services.presence_hub.locations import Location, LocationStore, parse_coordinates
from live_tracker.services.presence_hub.rate_limiter import RateLimiter
from live_tracker.services.presence_hub.sessions import SessionRegistry
from live_tracker.shared.models.messages import (
    ErrorMessage,
    LocationStopMessage,
    LocationUpdateMessage,
    PongMessage,
    RegistrationSuccessMessage,
    UserInfo,
    UserListMessage,
    WelcomeMessage,
)

if TYPE_CHECKING:
    from live_tracker.services.presence_hub.connection import WebSocketConnection

Handler = Callable[["WebSocketConnection", dict[str, Any]], Awaitable[None]]


def _non_empty_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


class PresenceHub:
    """
    Владелец всего разделяемого состояния хаба.

    Хранилища синхронные; составные переходы (мутация + снимок для
    рассылки) выполняются под одним asyncio.Lock, сама отправка после него.
    """

    def __init__(
        self,
        config: HubSettings | None = None,
        *,
        clock: Clock = now_ms,
    ) -> None:
        if config is None:
            from live_tracker.config import settings
            config = settings.hub

        self.config = config
        self.sessions = SessionRegistry()
        self.locations = LocationStore()
        self.rate_limiter = RateLimiter(
            window_ms=config.RATE_LIMIT_WINDOW_MS,
            max_requests=config.RATE_LIMIT_MAX_REQUESTS,
        )
        self.broadcaster = Broadcaster()
        self._clock = clock
        self._lock = asyncio.Lock()
        self._ttl_ms = config.location_ttl_ms

        # connection_id -> задача таймаута регистрации
        self._registration_timers: dict[str, asyncio.Task] = {}

        self.janitor = Janitor(
            self.locations,
            self.rate_limiter,
            ttl_ms=self._ttl_ms,
            interval=config.JANITOR_INTERVAL,
            lock=self._lock,
            clock=clock,
        )

        self._handlers: dict[str, Handler] = {
            InboundType.REGISTER.value: self._handle_register,
            InboundType.LOCATION_UPDATE.value: self._handle_location_update,
            InboundType.STOP_SHARING.value: self._handle_stop_sharing,
            InboundType.TRACK_USER.value: self._handle_track_user,
            InboundType.PING.value: self._handle_ping,
        }

    # =========================================================================
    # ЖИЗНЕННЫЙ ЦИКЛ СОЕДИНЕНИЯ
    # =========================================================================

    def state_of(self, connection: "WebSocketConnection") -> ConnectionState:
        if not connection.is_open:
            return ConnectionState.CLOSED
        if self.sessions.identity_for(connection.connection_id) is not None:
            return ConnectionState.REGISTERED
        return ConnectionState.UNREGISTERED

    async def connect(self, connection: "WebSocketConnection") -> None:
        """Новое соединение: приветствие и таймер регистрации."""
        self.broadcaster.add(connection)
        self._arm_registration_timer(connection)
        await log_info(
            f"Клиент подключился: {connection.connection_id}",
            type_msg=TypeMsg.DEBUG,
        )
        await self.broadcaster.send_one(connection, WelcomeMessage(message=WELCOME_TEXT))

    async def disconnect(self, connection: "WebSocketConnection") -> None:
        """
        Освободить соединение.

        Идемпотентна: повторный вызов не рассылает location_stop и user_list.
        """
        self._cancel_registration_timer(connection.connection_id)
        self.broadcaster.discard(connection)

        async with self._lock:
            identity = self.sessions.unbind(connection.connection_id)
            if identity is None:
                return
            now = self._clock()
            stop_message = None
            if self.locations.remove(identity):
                stop_message = LocationStopMessage(user_id=identity, timestamp=now)
            user_list = self._user_list_message(now)

        await log_info(f"Пользователь отключился: {identity}", type_msg=TypeMsg.INFO)

        if stop_message is not None:
            await self.broadcaster.broadcast_all(stop_message)
        await self.broadcaster.broadcast_all(user_list)

    async def shutdown(self) -> None:
        """Закрыть все соединения с кодом 1001."""
        for task in self._registration_timers.values():
            task.cancel()
        self._registration_timers.clear()

        connections = self.broadcaster.connections()
        for connection in connections:
            await connection.close(CloseCode.GOING_AWAY, REASON_SHUTDOWN)
            self.broadcaster.discard(connection)

        await log_info(f"Хаб остановлен, закрыто соединений: {len(connections)}")

    async def _registration_timeout(self, connection: "WebSocketConnection") -> None:
        await asyncio.sleep(self.config.REGISTRATION_TIMEOUT)
        self._registration_timers.pop(connection.connection_id, None)

        if self.sessions.identity_for(connection.connection_id) is not None:
            return

        await log_info(
            f"Соединение {connection.connection_id} не зарегистрировалось вовремя",
            type_msg=TypeMsg.WARNING,
        )
        await connection.close(CloseCode.NORMAL, REASON_REGISTRATION_TIMEOUT)
        await self.disconnect(connection)

    def _arm_registration_timer(self, connection: "WebSocketConnection") -> None:
        self._cancel_registration_timer(connection.connection_id)
        self._registration_timers[connection.connection_id] = asyncio.create_task(
            self._registration_timeout(connection),
            name=f"registration-timeout-{connection.connection_id}",
        )

    def _cancel_registration_timer(self, connection_id: str) -> None:
        task = self._registration_timers.pop(connection_id, None)
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    # =========================================================================
    # ВХОДЯЩИЕ СООБЩЕНИЯ
    # =========================================================================

    async def handle_raw(self, connection: "WebSocketConnection", raw: str | bytes) -> None:
        """Разобрать JSON-кадр и передать в handle_message."""
        try:
            data = json.loads(raw)
        except (ValueError, TypeError, RecursionError):
            # RecursionError: слишком глубокая вложенность
            await self._send_error(connection, ERR_INVALID_JSON)
            return

        await self.handle_message(connection, data)

    async def handle_message(self, connection: "WebSocketConnection", data: Any) -> None:
        """
        Проверить и диспетчеризовать сообщение по полю type.

        Ничего из присланного клиентом не должно поднять исключение наружу.
        """
        if not isinstance(data, dict) or not isinstance(data.get("type"), str):
            await self._send_error(connection, ERR_INVALID_FORMAT)
            return

        identity = self.sessions.identity_for(connection.connection_id)
        if identity is not None and not self.rate_limiter.allow(identity, self._clock()):
            await log_warning(
                f"Превышен лимит запросов: {identity}",
                extra={"user_id": identity, "type": data["type"]},
            )
            await self._send_error(connection, ERR_RATE_LIMIT)
            return

        message_type = data["type"]
        handler = self._handlers.get(message_type)
        if handler is None:
            await self._send_error(connection, f"Unknown message type: {message_type}")
            return

        try:
            await handler(connection, data)
        except Exception as e:
            await log_error(
                f"Ошибка обработки сообщения {message_type}: {e}",
                extra={"connection_id": connection.connection_id},
                exc_info=True,
            )
            await self._send_error(connection, ERR_INTERNAL)

    async def _handle_register(self, connection: "WebSocketConnection", data: dict[str, Any]) -> None:
        identity = data.get("userId")
        if not isinstance(identity, str) or not identity.strip():
            await self._send_error(connection, ERR_INVALID_USER_ID)
            return

        name = _non_empty_str(data.get("name")) or self.config.DEFAULT_DISPLAY_NAME
        connection_id = connection.connection_id

        async with self._lock:
            is_new = identity not in self.sessions and self.sessions.identity_for(connection_id) is None
            at_capacity = is_new and self.sessions.count() >= self.config.MAX_SESSIONS
            if not at_capacity:
                now = self._clock()
                previous_identity = self.sessions.identity_for(connection_id)
                existing = self.sessions.get(identity)
                displaced_id = (
                    existing.connection_id
                    if existing is not None and existing.connection_id != connection_id
                    else None
                )
                self.sessions.upsert(connection_id, identity, name, now)

                # Соединение сменило identity: локация прежней identity уходит вместе с сессией
                stop_message = None
                if (
                    previous_identity is not None
                    and previous_identity != identity
                    and self.locations.remove(previous_identity)
                ):
                    stop_message = LocationStopMessage(user_id=previous_identity, timestamp=now)

                user_list = self._user_list_message(now)
                snapshot = [
                    self._location_message(location)
                    for location in self.locations.active_snapshot(now, self._ttl_ms)
                ]

        if at_capacity:
            await log_warning(
                f"Отказ в регистрации {identity}: достигнут лимит {self.config.MAX_SESSIONS} сессий",
                extra={"user_id": identity},
            )
            await self._send_error(connection, ERR_CAPACITY)
            await connection.close(CloseCode.TRY_AGAIN_LATER, REASON_CAPACITY)
            await self.disconnect(connection)
            return

        self._cancel_registration_timer(connection_id)
        await log_info(f"Пользователь зарегистрирован: {identity}", type_msg=TypeMsg.INFO)

        if displaced_id is not None:
            displaced = self.broadcaster.get(displaced_id)
            if displaced is not None:
                # Вытесненное соединение снова должно зарегистрироваться вовремя
                await log_info(
                    f"Соединение {displaced_id} потеряло identity {identity}",
                    type_msg=TypeMsg.WARNING,
                )
                self._arm_registration_timer(displaced)

        await self.broadcaster.send_one(connection, RegistrationSuccessMessage(user_id=identity))
        if stop_message is not None:
            await self.broadcaster.broadcast_all(stop_message)
        await self.broadcaster.broadcast_all(user_list)
        for message in snapshot:
            await self.broadcaster.send_one(connection, message)

    async def _handle_location_update(self, connection: "WebSocketConnection", data: dict[str, Any]) -> None:
        identity = self.sessions.identity_for(connection.connection_id)
        if identity is None:
            await self._send_error(connection, ERR_NOT_REGISTERED)
            return

        coordinates = parse_coordinates(data.get("lat"), data.get("lng"))
        if coordinates is None:
            await self._send_error(connection, ERR_INVALID_LOCATION)
            return
        lat, lng = coordinates

        target = _non_empty_str(data.get("userId")) or identity
        session = self.sessions.get(identity)

        async with self._lock:
            now = self._clock()
            name = (
                _non_empty_str(data.get("name"))
                or (session.name if session is not None else None)
                or self.config.DEFAULT_DISPLAY_NAME
            )
            location = self.locations.upsert(target, lat, lng, name, now)
            self.sessions.touch(identity, now)
            message = self._location_message(location)

        await log_debug(f"Локация обновлена: {target}", extra={"lat": lat, "lng": lng})
        await self.broadcaster.broadcast_all(message)

    async def _handle_stop_sharing(self, connection: "WebSocketConnection", data: dict[str, Any]) -> None:
        identity = self.sessions.identity_for(connection.connection_id)
        if identity is None:
            await self._send_error(connection, ERR_NOT_REGISTERED)
            return

        target = _non_empty_str(data.get("userId")) or identity

        async with self._lock:
            message = None
            if self.locations.remove(target):
                message = LocationStopMessage(user_id=target, timestamp=self._clock())

        if message is None:
            await log_debug(f"stop_sharing без сохранённой локации: {target}")
            return

        await log_info(f"Пользователь перестал делиться локацией: {target}", type_msg=TypeMsg.INFO)
        await self.broadcaster.broadcast_all(message)

    async def _handle_track_user(self, connection: "WebSocketConnection", data: dict[str, Any]) -> None:
        target = _non_empty_str(data.get("targetUserId"))
        if target is None:
            await self._send_error(connection, ERR_MISSING_TARGET)
            return

        location = self.locations.get_active(target, self._clock(), self._ttl_ms)
        if location is None:
            await log_debug(f"Нет активной локации для {target}")
            return

        await self.broadcaster.send_one(connection, self._location_message(location))

    async def _handle_ping(self, connection: "WebSocketConnection", data: dict[str, Any]) -> None:
        await self.broadcaster.send_one(connection, PongMessage())

    # =========================================================================
    # ВСПОМОГАТЕЛЬНОЕ
    # =========================================================================

    async def _send_error(self, connection: "WebSocketConnection", message: str) -> None:
        await self.broadcaster.send_one(connection, ErrorMessage(message=message))

    def _user_list_message(self, now: int) -> UserListMessage:
        return UserListMessage(
            users=[UserInfo.model_validate(user) for user in self.sessions.snapshot()],
            timestamp=now,
        )

    @staticmethod
    def _location_message(location: Location) -> LocationUpdateMessage:
        return LocationUpdateMessage(
            user_id=location.user_id,
            lat=location.lat,
            lng=location.lng,
            name=location.name,
            timestamp=location.timestamp,
        )

    def get_stats(self) -> dict[str, int]:
        """Получить статистику."""
        return {
            "sessions": self.sessions.count(),
            "stored_locations": len(self.locations),
            "active_locations": len(self.locations.active_snapshot(self._clock(), self._ttl_ms)),
            "rate_windows": len(self.rate_limiter),
            **self.broadcaster.get_stats(),
        }
