# live_tracker/shared/models/messages.py
"""
Исходящие сообщения WebSocket-протокола хаба.

Поля сериализуются в camelCase (userId, connectedAt), как ожидают клиенты.
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    """База для сообщений протокола."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class WelcomeMessage(_WireModel):
    type: Literal["welcome"] = "welcome"
    message: str


class RegistrationSuccessMessage(_WireModel):
    type: Literal["registration_success"] = "registration_success"
    user_id: str = Field(alias="userId")


class ErrorMessage(_WireModel):
    type: Literal["error"] = "error"
    message: str


class UserInfo(_WireModel):
    """Элемент списка пользователей."""
    user_id: str = Field(alias="userId")
    name: str
    connected_at: int = Field(alias="connectedAt")


class UserListMessage(_WireModel):
    type: Literal["user_list"] = "user_list"
    users: list[UserInfo]
    timestamp: int


class LocationUpdateMessage(_WireModel):
    type: Literal["location_update"] = "location_update"
    user_id: str = Field(alias="userId")
    lat: float
    lng: float
    name: str
    timestamp: int


class LocationStopMessage(_WireModel):
    type: Literal["location_stop"] = "location_stop"
    user_id: str = Field(alias="userId")
    timestamp: int


class PongMessage(_WireModel):
    type: Literal["pong"] = "pong"


def encode(message: BaseModel | dict[str, Any]) -> str:
    """Сериализует сообщение в JSON-текст для отправки."""
    if isinstance(message, BaseModel):
        return message.model_dump_json(by_alias=True)
    return json.dumps(message, ensure_ascii=False)
