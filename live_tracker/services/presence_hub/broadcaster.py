# live_tracker/services/presence_hub/broadcaster.py
"""
Рассылка сообщений по открытым соединениям.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from live_tracker.common.logger import log_warning
from live_tracker.shared.models.messages import encode

if TYPE_CHECKING:
    from live_tracker.services.presence_hub.connection import WebSocketConnection


class Broadcaster:
    """
    Fan-out сообщений всем открытым соединениям.

    Поддерживает:
    - Учёт соединений (зарегистрированных и ещё нет)
    - Рассылку всем с однократной сериализацией
    - Персональные сообщения

    Доставка best-effort: ошибка отправки одному клиенту логируется
    и не прерывает рассылку остальным. Повторов и очереди нет.
    """

    def __init__(self) -> None:
        # connection_id -> соединение
        self._connections: dict[str, "WebSocketConnection"] = {}

        # Для статистики
        self._total_connections: int = 0
        self._total_messages_sent: int = 0
        self._total_send_failures: int = 0

    @property
    def active_connections(self) -> int:
        """Количество отслеживаемых соединений."""
        return len(self._connections)

    def add(self, connection: "WebSocketConnection") -> None:
        if connection.connection_id not in self._connections:
            self._total_connections += 1
        self._connections[connection.connection_id] = connection

    def discard(self, connection: "WebSocketConnection") -> bool:
        """Убрать соединение. Возвращает True, если оно отслеживалось."""
        return self._connections.pop(connection.connection_id, None) is not None

    def get(self, connection_id: str) -> "WebSocketConnection | None":
        return self._connections.get(connection_id)

    def connections(self) -> list["WebSocketConnection"]:
        return list(self._connections.values())

    async def broadcast_all(self, message: BaseModel | dict[str, Any]) -> int:
        """
        Отправить сообщение всем открытым соединениям.

        Returns:
            Количество успешно доставленных сообщений
        """
        raw = encode(message)
        sent_count = 0
        failed: list[str] = []

        # Снимок: список соединений может меняться во время await
        for connection in list(self._connections.values()):
            if not connection.is_open:
                continue
            try:
                await connection.send_text(raw)
                sent_count += 1
            except Exception as e:
                failed.append(connection.connection_id)
                await log_warning(
                    f"Не удалось отправить сообщение соединению {connection.connection_id}: {e}",
                    extra={"connection_id": connection.connection_id},
                )

        self._total_messages_sent += sent_count
        self._total_send_failures += len(failed)

        if failed:
            await log_warning(
                f"Рассылка: доставлено {sent_count}, ошибок {len(failed)}",
                extra={"failed_connections": failed},
            )

        return sent_count

    async def send_one(
        self,
        connection: "WebSocketConnection",
        message: BaseModel | dict[str, Any],
    ) -> bool:
        """
        Отправить сообщение одному соединению.

        Returns:
            True если сообщение отправлено
        """
        if not connection.is_open:
            return False

        try:
            await connection.send_text(encode(message))
        except Exception as e:
            self._total_send_failures += 1
            await log_warning(
                f"Не удалось отправить сообщение соединению {connection.connection_id}: {e}",
                extra={"connection_id": connection.connection_id},
            )
            return False

        self._total_messages_sent += 1
        return True

    def get_stats(self) -> dict[str, int]:
        """Получить статистику."""
        return {
            "active_connections": len(self._connections),
            "total_connections_ever": self._total_connections,
            "total_messages_sent": self._total_messages_sent,
            "total_send_failures": self._total_send_failures,
        }
