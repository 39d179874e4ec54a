# tests/common/test_logger.py
"""
Unit тесты для модуля логирования (live_tracker/common/logger.py).
"""

import json
import logging
from unittest.mock import patch

import pytest

from live_tracker.common.constants import TypeMsg
from live_tracker.common.logger import (
    ColoredFormatter,
    JsonFormatter,
    _get_caller_info,
    get_logger,
    log_debug,
    log_error,
    log_info,
    log_warning,
)


def _record(level: int = logging.INFO, msg: str = "Test message") -> logging.LogRecord:
    record = logging.LogRecord(
        name="test_logger",
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    record.module = "test_module"
    record.funcName = "test_function"
    return record


class TestJsonFormatter:
    """Тесты для JsonFormatter."""

    def test_format_basic_record(self) -> None:
        data = json.loads(JsonFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["message"] == "Test message"
        assert data["function"] == "test_function"
        assert data["line"] == 10

    def test_format_with_extra_data(self) -> None:
        record = _record(logging.WARNING)
        record.extra_data = {"user_id": "a"}

        data = json.loads(JsonFormatter().format(record))

        assert data["extra"] == {"user_id": "a"}

    def test_format_with_exception(self) -> None:
        try:
            raise ValueError("Test exception")
        except ValueError:
            import sys
            record = _record(logging.ERROR)
            record.exc_info = sys.exc_info()

        data = json.loads(JsonFormatter().format(record))

        assert "ValueError: Test exception" in data["exception"]


class TestColoredFormatter:
    """Тесты для ColoredFormatter."""

    def test_contains_level_and_message(self) -> None:
        result = ColoredFormatter().format(_record(logging.ERROR, "Boom"))

        assert "[ERROR]" in result
        assert "Boom" in result

    def test_includes_caller_info(self) -> None:
        record = _record()
        record.extra_data = {
            "caller_function": "handler",
            "caller_module": "live_tracker.hub",
            "caller_file": "hub.py",
            "caller_line": 42,
        }

        result = ColoredFormatter().format(record)

        assert "live_tracker.hub.handler()" in result
        assert "hub.py:42" in result


class TestGetLogger:
    """Тесты для get_logger."""

    def test_cached(self) -> None:
        assert get_logger("live_tracker.test_cache") is get_logger("live_tracker.test_cache")

    def test_does_not_propagate(self) -> None:
        logger = get_logger("live_tracker.test_propagate")
        assert logger.propagate is False
        assert logger.handlers


def test_caller_info_points_to_caller() -> None:
    def log_wrapper():
        return _get_caller_info()

    info = log_wrapper()

    assert info["caller_function"] == "test_caller_info_points_to_caller"
    assert info["caller_file"] == "test_logger.py"


class TestAsyncHelpers:
    """Тесты асинхронных функций логирования."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "type_msg,level",
        [
            (TypeMsg.DEBUG, logging.DEBUG),
            (TypeMsg.INFO, logging.INFO),
            (TypeMsg.WARNING, logging.WARNING),
            (TypeMsg.CRITICAL, logging.CRITICAL),
        ],
    )
    async def test_log_info_levels(self, type_msg, level) -> None:
        logger = get_logger("live_tracker.test_levels")
        with patch.object(logger, "log") as mock_log:
            await log_info("hello", type_msg=type_msg, logger_name="live_tracker.test_levels")

        assert mock_log.call_args[0][0] == level
        assert mock_log.call_args[0][1] == "hello"

    @pytest.mark.asyncio
    async def test_helpers_attach_extra(self) -> None:
        logger = get_logger("live_tracker.test_extra")
        with patch.object(logger, "log") as mock_log:
            await log_debug("d", logger_name="live_tracker.test_extra", extra={"k": 1})
            await log_warning("w", logger_name="live_tracker.test_extra")
            await log_error("e", logger_name="live_tracker.test_extra", exc_info=True)

        levels = [call[0][0] for call in mock_log.call_args_list]
        assert levels == [logging.DEBUG, logging.WARNING, logging.ERROR]
        first_extra = mock_log.call_args_list[0][1]["extra"]["extra_data"]
        assert first_extra["k"] == 1
        assert first_extra["caller_function"] == "test_helpers_attach_extra"
        assert mock_log.call_args_list[2][1]["exc_info"] is True
