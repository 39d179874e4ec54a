# live_tracker/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum, IntEnum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class InboundType(str, Enum):
    """Типы входящих сообщений от клиента."""
    REGISTER = "register"
    LOCATION_UPDATE = "location_update"
    STOP_SHARING = "stop_sharing"
    TRACK_USER = "track_user"
    PING = "ping"


class CloseCode(IntEnum):
    """Коды закрытия WebSocket."""
    NORMAL = 1000
    GOING_AWAY = 1001
    TRY_AGAIN_LATER = 1013


class ConnectionState(str, Enum):
    """Состояния соединения."""
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"
    CLOSED = "closed"


# Тексты ошибок протокола
ERR_INVALID_JSON = "Invalid JSON"
ERR_INVALID_FORMAT = "Invalid message format"
ERR_RATE_LIMIT = "Rate limit exceeded"
ERR_INVALID_USER_ID = "Invalid user ID"
ERR_CAPACITY = "Server at capacity"
ERR_NOT_REGISTERED = "Not registered"
ERR_INVALID_LOCATION = "Invalid location data"
ERR_MISSING_TARGET = "Missing target user ID"
ERR_INTERNAL = "Internal server error"

WELCOME_TEXT = "Connected to live tracker. Please register."
REASON_REGISTRATION_TIMEOUT = "Registration timeout"
REASON_CAPACITY = "Server at capacity"
REASON_SHUTDOWN = "Server shutting down"
