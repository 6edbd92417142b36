"""Errors raised by chat actions and configuration loading.

Action errors are local to one user: they abort the action, get reported,
and the user keeps running.
"""

from __future__ import annotations


class ChatSimError(Exception):
    """Base class for chat simulation errors."""


class NoChatsAvailable(ChatSimError):
    """An action needed a joined room and the user has none."""

    def __init__(self, user_id: str, room_id: str | None = None) -> None:
        self.user_id = user_id
        self.room_id = room_id
        if room_id is None:
            super().__init__("No chats available")
        else:
            super().__init__(f"No chats available: not in chat {room_id}")


class DuplicateChatID(ChatSimError):
    """The derived room id is already among the creator's rooms."""

    def __init__(self, room_id: str) -> None:
        self.room_id = room_id
        super().__init__(f"Duplicated chat ID: {room_id}")


class NoPeersAvailable(ChatSimError):
    """A chat could not be created because the requested peers are unknown."""

    def __init__(self, user_id: str, missing: tuple[str, ...] = ()) -> None:
        self.user_id = user_id
        self.missing = missing
        if missing:
            super().__init__(f"Unknown peers: {', '.join(missing)}")
        else:
            super().__init__("No peers available")


class ConfigError(ChatSimError, ValueError):
    """Invalid configuration value."""
