"""Chat events exchanged between users.

``ChatEvent`` is a closed union of three frozen dataclasses. Handlers match
on the concrete class and end with ``assert_never`` so a new kind cannot be
added without every handler being updated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar

from chatsim.room import ChatRoom

NEW_CHAT_MESSAGE = "New chat created"


class ChatEventType(Enum):
    """Kinds of chat events.

    The values are also the action codes drawn by a user's decision cycle.
    """

    NEW = 0
    MESSAGE = 1
    CLOSE = 2


@dataclass(frozen=True)
class NewChat:
    """A room was created; every peer is told, only members join."""

    type: ClassVar[ChatEventType] = ChatEventType.NEW

    actor: str
    room: ChatRoom
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def message(self) -> str:
        return NEW_CHAT_MESSAGE


@dataclass(frozen=True)
class ChatMessage:
    """A text message sent to the other members of a room."""

    type: ClassVar[ChatEventType] = ChatEventType.MESSAGE

    actor: str
    room: ChatRoom
    message: str
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class CloseChat:
    """A room was closed; every peer forgets its id."""

    type: ClassVar[ChatEventType] = ChatEventType.CLOSE

    actor: str
    room: ChatRoom
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def message(self) -> str:
        return ""


type ChatEvent = NewChat | ChatMessage | CloseChat


def greeting(user_id: str, at: datetime) -> str:
    return f"Hello from {user_id} at {at:%H:%M:%S}"
