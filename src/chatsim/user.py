"""Simulated chat user.

Each user is an actor with two inbound channels sharing one FIFO mailbox:
presence notifications (``UserHandle.presence``) and chat events
(``UserHandle.events``). A periodic ``Tick`` drives a random decision to
create a chat, send a message, close a chat, or do nothing.

State is two maps owned by the actor: known peers and joined rooms. Each
message produces a new ``active(peers, rooms)`` behavior; nothing else ever
reads or writes them.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import assert_never, TYPE_CHECKING

from chatsim.chat import ChatEvent, ChatEventType, ChatMessage, CloseChat, NewChat, greeting
from chatsim.core.behavior import Behaviors
from chatsim.core.ref import ActorRef, AdaptedRef
from chatsim.errors import ChatSimError, DuplicateChatID, NoChatsAvailable, NoPeersAvailable
from chatsim.reports import (
    Action,
    ActionFailed,
    ActionOutcome,
    ActionTaken,
    ChatJoined,
    ChatObserved,
    CloseAcknowledged,
    MessageReceived,
    PeerSeen,
    Report,
)
from chatsim.room import ChatRoom

if TYPE_CHECKING:
    from chatsim.core.behavior import Behavior
    from chatsim.core.cell import ActorContext


@dataclass(frozen=True)
class UserHandle:
    """Reference to a user as seen by its peers."""

    id: str
    presence: ActorRef[UserHandle]
    events: ActorRef[ChatEvent]

    @staticmethod
    def for_ref(ref: ActorRef[UserMsg], user_id: str | None = None) -> UserHandle:
        return UserHandle(
            id=user_id if user_id is not None else ref.id,
            presence=AdaptedRef(inner=ref, adapt=PeerOnline),
            events=ref,
        )


@dataclass(frozen=True)
class PeerOnline:
    peer: UserHandle


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class CreateChat:
    """Create a chat with ``members``, or with random peers when ``None``."""

    members: tuple[str, ...] | None = None
    reply_to: ActorRef[ActionOutcome] | None = None


@dataclass(frozen=True)
class SendMessage:
    room_id: str | None = None
    text: str | None = None
    reply_to: ActorRef[ActionOutcome] | None = None


@dataclass(frozen=True)
class CloseChatRoom:
    room_id: str | None = None
    reply_to: ActorRef[ActionOutcome] | None = None


@dataclass(frozen=True)
class UserSnapshot:
    id: str
    peer_ids: tuple[str, ...]
    joined_rooms: tuple[ChatRoom, ...]

    @property
    def room_ids(self) -> frozenset[str]:
        return frozenset(room.id for room in self.joined_rooms)


@dataclass(frozen=True)
class GetSnapshot:
    reply_to: ActorRef[UserSnapshot]


type UserCommand = CreateChat | SendMessage | CloseChatRoom
type UserMsg = PeerOnline | NewChat | ChatMessage | CloseChat | Tick | UserCommand | GetSnapshot


ACTION_CODES: dict[int, Action] = {
    ChatEventType.NEW.value: Action.create_chat,
    ChatEventType.MESSAGE.value: Action.send_message,
    ChatEventType.CLOSE.value: Action.close_chat,
}


def choose_action(rng: random.Random, action_range: int) -> Action | None:
    """Draw one code from ``range(action_range)``; codes without an action are no-ops."""
    return ACTION_CODES.get(rng.randrange(action_range))


def plan_new_chat(
    user_id: str,
    peers: Mapping[str, UserHandle],
    rooms: Mapping[str, ChatRoom],
    rng: random.Random,
    members: Iterable[str] | None = None,
) -> NewChat:
    """Pick the members of a new chat and build its ``NewChat`` event.

    Raises
    ------
    NoPeersAvailable
        No peers are known, or an explicit member is not a known peer.
    DuplicateChatID
        The creator already belongs to a room with the same members.
    """
    if members is None:
        if not peers:
            raise NoPeersAvailable(user_id)
        peer_ids = sorted(peers)
        size = rng.randint(2, len(peer_ids) + 1)
        chosen = rng.sample(peer_ids, size - 1)
    else:
        chosen = sorted(set(members) - {user_id})
        missing = tuple(m for m in chosen if m not in peers)
        if not chosen or missing:
            raise NoPeersAvailable(user_id, missing)

    room = ChatRoom.of([*chosen, user_id])
    if room.id in rooms:
        raise DuplicateChatID(room.id)
    return NewChat(actor=user_id, room=room)


def pick_room(
    user_id: str,
    rooms: Mapping[str, ChatRoom],
    rng: random.Random,
    room_id: str | None = None,
) -> ChatRoom:
    """Return ``room_id``'s room, or a uniformly random joined room.

    Raises
    ------
    NoChatsAvailable
        No rooms are joined, or ``room_id`` is not one of them.
    """
    if room_id is not None:
        room = rooms.get(room_id)
        if room is None:
            raise NoChatsAvailable(user_id, room_id)
        return room
    if not rooms:
        raise NoChatsAvailable(user_id)
    return rooms[rng.choice(sorted(rooms))]


def user(
    user_id: str,
    *,
    rng: random.Random | None = None,
    tick_interval: float | None = 1.0,
    action_range: int = 10,
) -> Behavior[UserMsg]:
    """Behavior of one simulated chat user.

    Parameters
    ----------
    user_id : str
        Identifier used for room ids and reports.
    rng : random.Random | None
        Source of every random choice; pass a seeded instance for
        reproducible runs.
    tick_interval : float | None
        Seconds between decision ticks. ``None`` disables autonomous
        behavior; the user then only reacts to messages and commands.
    action_range : int
        Size of the range the decision code is drawn from. Codes 0, 1 and 2
        trigger an action; the rest of the range is a no-op.
    """
    rng = rng if rng is not None else random.Random()
    log = logging.getLogger(f"chatsim.user.{user_id}")

    def report(ctx: ActorContext[UserMsg], record: Report) -> None:
        log.info("%s", record.describe())
        ctx.system.publish(record)

    def fan_out(
        ctx: ActorContext[UserMsg], recipients: Iterable[UserHandle], event: ChatEvent
    ) -> None:
        for peer in recipients:
            ctx.run_detached(peer.events.send, event)

    def active(
        peers: dict[str, UserHandle], rooms: dict[str, ChatRoom]
    ) -> Behavior[UserMsg]:

        def outcome(
            ctx: ActorContext[UserMsg],
            record: ActionTaken | ActionFailed,
            reply_to: ActorRef[ActionOutcome] | None,
        ) -> None:
            report(ctx, record)
            if reply_to is not None:
                reply_to.tell(record)

        def failed(
            ctx: ActorContext[UserMsg],
            action: Action,
            exc: ChatSimError,
            reply_to: ActorRef[ActionOutcome] | None,
        ) -> Behavior[UserMsg]:
            outcome(ctx, ActionFailed(user=user_id, action=action, error=exc), reply_to)
            return Behaviors.same()

        def create_chat(
            ctx: ActorContext[UserMsg],
            members: tuple[str, ...] | None,
            reply_to: ActorRef[ActionOutcome] | None,
        ) -> Behavior[UserMsg]:
            try:
                event = plan_new_chat(user_id, peers, rooms, rng, members)
            except ChatSimError as exc:
                return failed(ctx, Action.create_chat, exc, reply_to)

            fan_out(ctx, (peers[peer_id] for peer_id in sorted(peers)), event)
            outcome(
                ctx, ActionTaken(user=user_id, action=Action.create_chat, event=event), reply_to
            )
            return active(peers, {**rooms, event.room.id: event.room})

        def send_message(
            ctx: ActorContext[UserMsg],
            room_id: str | None,
            text: str | None,
            reply_to: ActorRef[ActionOutcome] | None,
        ) -> Behavior[UserMsg]:
            try:
                room = pick_room(user_id, rooms, rng, room_id)
            except ChatSimError as exc:
                return failed(ctx, Action.send_message, exc, reply_to)

            now = datetime.now()
            event = ChatMessage(
                actor=user_id,
                room=room,
                message=text if text is not None else greeting(user_id, now),
                timestamp=now,
            )
            recipients: list[UserHandle] = []
            for member in room.member_ids:
                if member == user_id:
                    continue
                peer = peers.get(member)
                if peer is None:
                    log.warning("Skipping %s in chat %s: not a known peer", member, room.id)
                    continue
                recipients.append(peer)

            fan_out(ctx, recipients, event)
            outcome(
                ctx, ActionTaken(user=user_id, action=Action.send_message, event=event), reply_to
            )
            return Behaviors.same()

        def close_chat(
            ctx: ActorContext[UserMsg],
            room_id: str | None,
            reply_to: ActorRef[ActionOutcome] | None,
        ) -> Behavior[UserMsg]:
            try:
                room = pick_room(user_id, rooms, rng, room_id)
            except ChatSimError as exc:
                return failed(ctx, Action.close_chat, exc, reply_to)

            event = CloseChat(actor=user_id, room=room)
            fan_out(ctx, (peers[peer_id] for peer_id in sorted(peers)), event)
            outcome(
                ctx, ActionTaken(user=user_id, action=Action.close_chat, event=event), reply_to
            )
            return active(peers, {k: v for k, v in rooms.items() if k != room.id})

        def perform(ctx: ActorContext[UserMsg], action: Action) -> Behavior[UserMsg]:
            match action:
                case Action.create_chat:
                    return create_chat(ctx, None, None)
                case Action.send_message:
                    return send_message(ctx, None, None, None)
                case Action.close_chat:
                    return close_chat(ctx, None, None)
                case _:
                    assert_never(action)

        def handle_event(ctx: ActorContext[UserMsg], event: ChatEvent) -> Behavior[UserMsg]:
            match event:
                case NewChat(room=room):
                    if room.has_member(user_id):
                        report(ctx, ChatJoined(user=user_id, room_id=room.id))
                        return active(peers, {**rooms, room.id: room})
                    report(ctx, ChatObserved(user=user_id, room_id=room.id))
                    return Behaviors.same()
                case ChatMessage(actor=sender, room=room, message=text):
                    report(
                        ctx,
                        MessageReceived(user=user_id, room_id=room.id, sender=sender, text=text),
                    )
                    return Behaviors.same()
                case CloseChat(room=room):
                    report(
                        ctx,
                        CloseAcknowledged(user=user_id, room_id=room.id, was_member=room.id in rooms),
                    )
                    if room.id not in rooms:
                        return Behaviors.same()
                    return active(peers, {k: v for k, v in rooms.items() if k != room.id})
                case _:
                    assert_never(event)

        async def receive(ctx: ActorContext[UserMsg], msg: UserMsg) -> Behavior[UserMsg]:
            match msg:
                case PeerOnline(peer=peer) if peer.id == user_id:
                    return Behaviors.same()

                case PeerOnline(peer=peer):
                    updated = {**peers, peer.id: peer}
                    report(
                        ctx,
                        PeerSeen(user=user_id, peer=peer.id, peer_ids=tuple(sorted(updated))),
                    )
                    return active(updated, rooms)

                case NewChat() | ChatMessage() | CloseChat():
                    return handle_event(ctx, msg)

                case Tick():
                    action = choose_action(rng, action_range)
                    if action is None:
                        return Behaviors.same()
                    return perform(ctx, action)

                case CreateChat(members=members, reply_to=reply_to):
                    return create_chat(ctx, members, reply_to)

                case SendMessage(room_id=room_id, text=text, reply_to=reply_to):
                    return send_message(ctx, room_id, text, reply_to)

                case CloseChatRoom(room_id=room_id, reply_to=reply_to):
                    return close_chat(ctx, room_id, reply_to)

                case GetSnapshot(reply_to=reply_to):
                    reply_to.tell(
                        UserSnapshot(
                            id=user_id,
                            peer_ids=tuple(sorted(peers)),
                            joined_rooms=tuple(rooms[k] for k in sorted(rooms)),
                        )
                    )
                    return Behaviors.same()

            log.warning("Ignoring unexpected message %r", msg)
            return Behaviors.same()

        return Behaviors.receive(receive)

    if tick_interval is None:
        return active({}, {})

    async def start_ticking(ctx: ActorContext[UserMsg]) -> Behavior[UserMsg]:
        ctx.schedule_every(tick_interval, Tick())
        return active({}, {})

    return Behaviors.setup(start_ticking)
