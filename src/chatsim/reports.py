"""Observable state transitions of a user.

Each record is logged on the user's logger and published on the actor
system. Subscribing to ``Report`` receives all of them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from chatsim.chat import ChatEvent
from chatsim.errors import ChatSimError


class Action(Enum):
    create_chat = "create chat"
    send_message = "send message"
    close_chat = "close chat"


@dataclass(frozen=True, kw_only=True)
class Report(ABC):
    user: str
    timestamp: datetime = field(default_factory=datetime.now)

    @abstractmethod
    def describe(self) -> str:
        """First-person log line for this record."""


@dataclass(frozen=True, kw_only=True)
class PeerSeen(Report):
    peer: str
    peer_ids: tuple[str, ...]

    def describe(self) -> str:
        return f"I see {len(self.peer_ids)} users: {', '.join(self.peer_ids)}"


@dataclass(frozen=True, kw_only=True)
class ChatJoined(Report):
    room_id: str

    def describe(self) -> str:
        return f"I joined chat {self.room_id}"


@dataclass(frozen=True, kw_only=True)
class ChatObserved(Report):
    room_id: str

    def describe(self) -> str:
        return f"I see a new chat {self.room_id}"


@dataclass(frozen=True, kw_only=True)
class MessageReceived(Report):
    room_id: str
    sender: str
    text: str

    def describe(self) -> str:
        return f'I received message "{self.text}" from chat {self.room_id}'


@dataclass(frozen=True, kw_only=True)
class CloseAcknowledged(Report):
    room_id: str
    was_member: bool

    def describe(self) -> str:
        return f"I acknowledged closing of chat {self.room_id}"


@dataclass(frozen=True, kw_only=True)
class ActionTaken(Report):
    action: Action
    event: ChatEvent

    def describe(self) -> str:
        room_id = self.event.room.id
        match self.action:
            case Action.create_chat:
                return f"I created a new chatroom: {room_id}"
            case Action.send_message:
                return f'I sent a message "{self.event.message}" to chat {room_id}'
            case Action.close_chat:
                return f"I closed chat {room_id}"


@dataclass(frozen=True, kw_only=True)
class ActionFailed(Report):
    action: Action
    error: ChatSimError

    def describe(self) -> str:
        return f"I wanted to {self.action.value}, but an error occurred: {self.error}"


type ActionOutcome = ActionTaken | ActionFailed
