"""
Тесты для сериализации сообщений протокола.
"""

import json

from live_tracker.shared.models.messages import (
    ErrorMessage,
    LocationUpdateMessage,
    PongMessage,
    RegistrationSuccessMessage,
    UserInfo,
    UserListMessage,
    encode,
)


def test_registration_success_uses_camel_case() -> None:
    payload = json.loads(encode(RegistrationSuccessMessage(user_id="alice")))
    assert payload == {"type": "registration_success", "userId": "alice"}


def test_user_list_nested_aliases() -> None:
    message = UserListMessage(
        users=[UserInfo(user_id="a", name="Alice", connected_at=5)],
        timestamp=10,
    )
    payload = json.loads(encode(message))

    assert payload["type"] == "user_list"
    assert payload["users"] == [{"userId": "a", "name": "Alice", "connectedAt": 5}]
    assert payload["timestamp"] == 10


def test_location_update_accepts_aliases() -> None:
    message = LocationUpdateMessage.model_validate(
        {"userId": "a", "lat": 1.5, "lng": 2.5, "name": "Alice", "timestamp": 1}
    )
    assert message.user_id == "a"
    assert json.loads(encode(message))["lat"] == 1.5


def test_encode_plain_dict_keeps_unicode() -> None:
    assert encode({"type": "error", "message": "Привет"}) == '{"type": "error", "message": "Привет"}'


def test_simple_messages() -> None:
    assert json.loads(encode(PongMessage())) == {"type": "pong"}
    assert json.loads(encode(ErrorMessage(message="Not registered"))) == {
        "type": "error",
        "message": "Not registered",
    }
