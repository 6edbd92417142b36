from __future__ import annotations

import io
import logging
from collections.abc import Iterator

import pytest

from chatsim.console import UserLogFormatter, actor_name, configure_logging


@pytest.fixture(autouse=True)
def restore_chatsim_logger() -> Iterator[None]:
    logger = logging.getLogger("chatsim")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


def make_record(name: str, msg: str, level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, msg, None, None)


def test_actor_name() -> None:
    assert actor_name("chatsim.user.user_12") == "user_12"
    assert actor_name("chatsim.actor.recorder") == "recorder"
    assert actor_name("chatsim.simulation") == "chatsim.simulation"


def test_plain_format_has_timestamp_and_user() -> None:
    line = UserLogFormatter().format(make_record("chatsim.user.user_2", "I joined chat user_1_user_2"))
    assert line.startswith("[")
    assert "     user_2] I joined chat user_1_user_2" in line
    assert "\033[" not in line


def test_color_format_wraps_warnings() -> None:
    line = UserLogFormatter(color=True).format(
        make_record("chatsim.user.user_1", "careful", logging.WARNING)
    )
    assert "\033[33mcareful\033[0m" in line


def test_configure_logging_writes_to_stream() -> None:
    stream = io.StringIO()
    configure_logging("DEBUG", color=False, stream=stream)
    logging.getLogger("chatsim.user.user_9").debug("I see %d users: %s", 1, "user_1")
    assert "user_9] I see 1 users: user_1" in stream.getvalue()


def test_configure_logging_replaces_previous_handler() -> None:
    first, second = io.StringIO(), io.StringIO()
    configure_logging("INFO", color=False, stream=first)
    configure_logging("INFO", color=False, stream=second)
    logging.getLogger("chatsim.user.x").info("hello")
    assert first.getvalue() == ""
    assert "hello" in second.getvalue()
