"""Console log formatting.

Every record is rendered as one line with a microsecond timestamp and the
emitting actor's identifier::

    [13:04:05.123456      user_2] I joined chat user_1_user_2
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from typing import TextIO

RESET = "\033[0m"
DIM = "\033[2m"
CYAN = "\033[36m"
LEVEL_COLORS = {
    logging.DEBUG: DIM,
    logging.INFO: "",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;31m",
}

ACTOR_LOGGER_PREFIXES = ("chatsim.user.", "chatsim.actor.", "chatsim.system.")


def actor_name(logger_name: str) -> str:
    """Return the actor id encoded in a per-actor logger name.

    Examples
    --------
    >>> actor_name("chatsim.user.user_3")
    'user_3'
    >>> actor_name("chatsim.simulation")
    'chatsim.simulation'
    """
    for prefix in ACTOR_LOGGER_PREFIXES:
        if logger_name.startswith(prefix):
            return logger_name[len(prefix):]
    return logger_name


class UserLogFormatter(logging.Formatter):
    def __init__(self, *, color: bool = False) -> None:
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")
        name = actor_name(record.name)
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        if not self.color:
            return f"[{ts:<15} {name:>11}] {message}"
        color = LEVEL_COLORS.get(record.levelno, "")
        if color:
            message = f"{color}{message}{RESET}"
        return f"{DIM}[{ts:<15}{RESET} {CYAN}{name:>11}{RESET}{DIM}]{RESET} {message}"


def configure_logging(
    level: str | int = "INFO", *, color: bool = True, stream: TextIO | None = None
) -> logging.Handler:
    """Install a ``UserLogFormatter`` handler on the ``chatsim`` logger."""
    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(UserLogFormatter(color=color))
    root = logging.getLogger("chatsim")
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)
    return handler
