"""
Pydantic модели, общие для сервисов.
"""

from live_tracker.shared.models.common import HealthStatus
from live_tracker.shared.models.messages import (
    ErrorMessage,
    LocationStopMessage,
    LocationUpdateMessage,
    PongMessage,
    RegistrationSuccessMessage,
    UserInfo,
    UserListMessage,
    WelcomeMessage,
    encode,
)

__all__ = [
    "HealthStatus",
    "ErrorMessage",
    "LocationStopMessage",
    "LocationUpdateMessage",
    "PongMessage",
    "RegistrationSuccessMessage",
    "UserInfo",
    "UserListMessage",
    "WelcomeMessage",
    "encode",
]
