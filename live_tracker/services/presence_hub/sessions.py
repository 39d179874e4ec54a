# live_tracker/services/presence_hub/sessions.py
"""
Реестр сессий: identity → сессия и connection_id → identity.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class Session:
    """Живая привязка identity к соединению."""
    user_id: str
    name: str
    connection_id: str
    connected_at: int
    last_seen: int

    def to_public(self) -> dict[str, Any]:
        """Представление для user_list."""
        return {
            "userId": self.user_id,
            "name": self.name,
            "connectedAt": self.connected_at,
        }


class SessionRegistry:
    """
    Реестр активных сессий.

    Хранит две таблицы:
    - identity → Session
    - connection_id → identity (вместо метки на самом объекте соединения)

    Повторная регистрация той же identity перезаписывает сессию,
    старое соединение при этом теряет привязку.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._bindings: dict[str, str] = {}

    def __contains__(self, identity: object) -> bool:
        return identity in self._sessions

    def count(self) -> int:
        """Количество сессий (для проверки лимита)."""
        return len(self._sessions)

    def upsert(self, connection_id: str, identity: str, name: str, now: int) -> Session:
        """
        Создать или перезаписать сессию и привязать identity к соединению.

        Returns:
            Актуальная сессия
        """
        previous_identity = self._bindings.get(connection_id)
        if previous_identity is not None and previous_identity != identity:
            # Соединение меняет identity, старая сессия уходит
            self._sessions.pop(previous_identity, None)

        existing = self._sessions.get(identity)
        if existing is not None and existing.connection_id != connection_id:
            self._bindings.pop(existing.connection_id, None)
            existing = None

        connected_at = existing.connected_at if existing is not None else now
        session = Session(
            user_id=identity,
            name=name,
            connection_id=connection_id,
            connected_at=connected_at,
            last_seen=now,
        )
        self._sessions[identity] = session
        self._bindings[connection_id] = identity
        return session

    def remove(self, identity: str) -> Session | None:
        """Удалить сессию по identity вместе с привязкой соединения."""
        session = self._sessions.pop(identity, None)
        if session is not None and self._bindings.get(session.connection_id) == identity:
            del self._bindings[session.connection_id]
        return session

    def unbind(self, connection_id: str) -> str | None:
        """
        Освободить соединение: снять привязку и удалить его сессию.

        Идемпотентна: повторный вызов возвращает None.
        """
        identity = self._bindings.pop(connection_id, None)
        if identity is None:
            return None
        session = self._sessions.get(identity)
        if session is not None and session.connection_id == connection_id:
            del self._sessions[identity]
        return identity

    def identity_for(self, connection_id: str) -> str | None:
        """identity, привязанная к соединению."""
        return self._bindings.get(connection_id)

    def get(self, identity: str) -> Session | None:
        return self._sessions.get(identity)

    def touch(self, identity: str, now: int) -> None:
        """Обновить last_seen."""
        session = self._sessions.get(identity)
        if session is not None:
            session.last_seen = now

    def snapshot(self) -> list[dict[str, Any]]:
        """Список сессий в порядке регистрации."""
        return [session.to_public() for session in self._sessions.values()]
