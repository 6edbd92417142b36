from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass

import pytest

from chatsim import (
    Action,
    ActionFailed,
    ActionTaken,
    ActorSystem,
    ChatJoined,
    ChatMessage,
    ChatObserved,
    ChatRoom,
    CloseAcknowledged,
    CloseChat,
    CloseChatRoom,
    CreateChat,
    DuplicateChatID,
    MessageReceived,
    NewChat,
    NoChatsAvailable,
    NoPeersAvailable,
    PeerSeen,
    SendMessage,
    UserHandle,
)
from chatsim.user import choose_action, pick_room, plan_new_chat

from tests.utils import introduce, record_reports, retry_until, settle, snapshot, spawn_user


@dataclass(frozen=True)
class Nowhere:
    id: str

    def tell(self, msg: object) -> None:
        pass

    async def send(self, msg: object) -> None:
        pass


def handles(*ids: str) -> dict[str, UserHandle]:
    return {i: UserHandle.for_ref(Nowhere(i)) for i in ids}


class FixedRandom(random.Random):
    def __init__(self, code: int) -> None:
        super().__init__(0)
        self.code = code

    def randrange(self, *args: object, **kwargs: object) -> int:
        return self.code


# Pure decision helpers


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        (0, Action.create_chat),
        (1, Action.send_message),
        (2, Action.close_chat),
        (3, None),
        (9, None),
    ],
)
def test_choose_action_maps_codes(code: int, expected: Action | None) -> None:
    assert choose_action(FixedRandom(code), 10) is expected


def test_choose_action_mostly_idles_with_default_range() -> None:
    rng = random.Random(1)
    counts = Counter(choose_action(rng, 10) for _ in range(10_000))
    assert 6_500 < counts[None] < 7_500
    for action in Action:
        assert 800 < counts[action] < 1_200


def test_plan_new_chat_picks_distinct_known_peers() -> None:
    peers = handles("user_2", "user_3", "user_4", "user_5")
    for seed in range(200):
        event = plan_new_chat("user_1", peers, {}, random.Random(seed))
        members = event.room.member_ids
        assert "user_1" in members
        assert 2 <= len(members) <= len(peers) + 1
        assert len(set(members)) == len(members)
        assert set(members) - {"user_1"} <= set(peers)
        assert event.actor == "user_1"


def test_plan_new_chat_covers_every_room_size() -> None:
    peers = handles("B", "C", "D")
    sizes = {
        len(plan_new_chat("A", peers, {}, random.Random(seed)).room.member_ids)
        for seed in range(200)
    }
    assert sizes == {2, 3, 4}


def test_plan_new_chat_is_reproducible_with_a_seed() -> None:
    peers = handles("B", "C", "D", "E")
    first = plan_new_chat("A", peers, {}, random.Random(7))
    second = plan_new_chat("A", dict(reversed(list(peers.items()))), {}, random.Random(7))
    assert first.room == second.room


def test_plan_new_chat_rejects_duplicate_room() -> None:
    room = ChatRoom.of(["A", "B"])
    with pytest.raises(DuplicateChatID) as exc_info:
        plan_new_chat("A", handles("B"), {room.id: room}, random.Random(0))
    assert exc_info.value.room_id == "A_B"


def test_plan_new_chat_without_peers() -> None:
    with pytest.raises(NoPeersAvailable):
        plan_new_chat("A", {}, {}, random.Random(0))


def test_plan_new_chat_with_explicit_members() -> None:
    event = plan_new_chat("A", handles("B", "C"), {}, random.Random(0), ["C", "A"])
    assert event.room.id == "A_C"

    with pytest.raises(NoPeersAvailable) as exc_info:
        plan_new_chat("A", handles("B"), {}, random.Random(0), ["Z"])
    assert exc_info.value.missing == ("Z",)


def test_pick_room() -> None:
    rooms = {r.id: r for r in (ChatRoom.of(["A", "B"]), ChatRoom.of(["A", "C"]))}
    assert pick_room("A", rooms, random.Random(0), "A_C") == rooms["A_C"]
    picked = {pick_room("A", rooms, random.Random(seed)).id for seed in range(50)}
    assert picked == {"A_B", "A_C"}

    with pytest.raises(NoChatsAvailable):
        pick_room("A", {}, random.Random(0))
    with pytest.raises(NoChatsAvailable):
        pick_room("A", rooms, random.Random(0), "A_D")


# Actor behavior


async def test_presence_is_idempotent(system: ActorSystem) -> None:
    reports = record_reports(system)
    a = spawn_user(system, "A")
    b = UserHandle.for_ref(spawn_user(system, "B"))
    handle_a = UserHandle.for_ref(a)

    handle_a.presence.tell(b)
    handle_a.presence.tell(b)

    snap = await snapshot(system, a)
    assert snap.peer_ids == ("B",)
    await retry_until(lambda: sum(isinstance(r, PeerSeen) for r in reports) == 2)
    assert all(r.peer_ids == ("B",) for r in reports if isinstance(r, PeerSeen))


async def test_own_presence_is_ignored(system: ActorSystem) -> None:
    a = spawn_user(system, "A")
    handle = UserHandle.for_ref(a)
    handle.presence.tell(handle)
    assert (await snapshot(system, a)).peer_ids == ()


async def test_new_chat_joins_members_once(system: ActorSystem) -> None:
    reports = record_reports(system)
    b = spawn_user(system, "B")
    event = NewChat(actor="A", room=ChatRoom.of(["A", "B"]))

    b.tell(event)
    b.tell(event)

    snap = await snapshot(system, b)
    assert snap.joined_rooms == (event.room,)
    await retry_until(lambda: sum(isinstance(r, ChatJoined) for r in reports) == 2)


async def test_new_chat_for_non_member_is_only_observed(system: ActorSystem) -> None:
    reports = record_reports(system)
    c = spawn_user(system, "C")
    c.tell(NewChat(actor="A", room=ChatRoom.of(["A", "B"])))

    assert (await snapshot(system, c)).joined_rooms == ()
    await retry_until(
        lambda: any(isinstance(r, ChatObserved) and r.room_id == "A_B" for r in reports)
    )


async def test_message_is_accepted_without_membership(system: ActorSystem) -> None:
    reports = record_reports(system)
    c = spawn_user(system, "C")
    c.tell(ChatMessage(actor="A", room=ChatRoom.of(["A", "B"]), message="psst"))

    await retry_until(lambda: any(isinstance(r, MessageReceived) for r in reports))
    received = next(r for r in reports if isinstance(r, MessageReceived))
    assert (received.user, received.sender, received.text) == ("C", "A", "psst")
    assert (await snapshot(system, c)).joined_rooms == ()


async def test_close_always_removes_room(system: ActorSystem) -> None:
    reports = record_reports(system)
    b = spawn_user(system, "B")
    c = spawn_user(system, "C")
    room = ChatRoom.of(["A", "B"])

    b.tell(NewChat(actor="A", room=room))
    b.tell(CloseChat(actor="A", room=room))
    c.tell(CloseChat(actor="A", room=room))

    assert "A_B" not in (await snapshot(system, b)).room_ids
    assert "A_B" not in (await snapshot(system, c)).room_ids

    await retry_until(lambda: sum(isinstance(r, CloseAcknowledged) for r in reports) == 2)
    acks = {r.user: r.was_member for r in reports if isinstance(r, CloseAcknowledged)}
    assert acks == {"B": True, "C": False}


async def test_create_chat_notifies_every_peer(system: ActorSystem) -> None:
    reports = record_reports(system)
    a, b, c = (spawn_user(system, uid) for uid in ("A", "B", "C"))
    introduce(a, b, c)

    outcome = await system.ask(a, lambda r: CreateChat(reply_to=r), timeout=1.0)
    assert isinstance(outcome, ActionTaken)
    room = outcome.event.room
    assert room.has_member("A")
    assert room.id in (await snapshot(system, a)).room_ids

    await retry_until(
        lambda: {r.user for r in reports if isinstance(r, ChatJoined | ChatObserved)} == {"B", "C"}
    )
    for ref, uid in ((b, "B"), (c, "C")):
        joined = room.id in (await snapshot(system, ref)).room_ids
        assert joined == room.has_member(uid)


async def test_duplicate_create_fails_and_keeps_rooms(system: ActorSystem) -> None:
    a, b = spawn_user(system, "A"), spawn_user(system, "B")
    introduce(a, b)

    first = await system.ask(a, lambda r: CreateChat(members=("B",), reply_to=r), timeout=1.0)
    assert isinstance(first, ActionTaken)
    before = await snapshot(system, a)

    second = await system.ask(a, lambda r: CreateChat(members=("B",), reply_to=r), timeout=1.0)
    assert isinstance(second, ActionFailed)
    assert isinstance(second.error, DuplicateChatID)
    assert second.error.room_id == "A_B"
    assert (await snapshot(system, a)).joined_rooms == before.joined_rooms


async def test_random_create_with_single_peer_is_duplicate_second_time(
    system: ActorSystem,
) -> None:
    a, b = spawn_user(system, "A"), spawn_user(system, "B")
    introduce(a, b)

    await system.ask(a, lambda r: CreateChat(reply_to=r), timeout=1.0)
    outcome = await system.ask(a, lambda r: CreateChat(reply_to=r), timeout=1.0)
    assert isinstance(outcome, ActionFailed)
    assert isinstance(outcome.error, DuplicateChatID)


async def test_create_without_peers_fails(system: ActorSystem) -> None:
    a = spawn_user(system, "A")
    outcome = await system.ask(a, lambda r: CreateChat(reply_to=r), timeout=1.0)
    assert isinstance(outcome, ActionFailed)
    assert isinstance(outcome.error, NoPeersAvailable)


@pytest.mark.parametrize(
    ("command", "action"),
    [
        (lambda r: SendMessage(reply_to=r), Action.send_message),
        (lambda r: CloseChatRoom(reply_to=r), Action.close_chat),
    ],
)
async def test_actions_without_rooms_fail_and_send_nothing(
    system: ActorSystem, command, action: Action
) -> None:
    reports = record_reports(system)
    a, b = spawn_user(system, "A"), spawn_user(system, "B")
    introduce(a, b)

    outcome = await system.ask(a, command, timeout=1.0)
    assert isinstance(outcome, ActionFailed)
    assert outcome.action is action
    assert isinstance(outcome.error, NoChatsAvailable)
    assert str(outcome.error) == "No chats available"

    await settle()
    assert not any(r.user == "B" and not isinstance(r, PeerSeen) for r in reports)


async def test_actions_on_unknown_room_fail(system: ActorSystem) -> None:
    a = spawn_user(system, "A")
    outcome = await system.ask(
        a, lambda r: SendMessage(room_id="A_B", reply_to=r), timeout=1.0
    )
    assert isinstance(outcome, ActionFailed)
    assert isinstance(outcome.error, NoChatsAvailable)
    assert outcome.error.room_id == "A_B"


async def test_message_skips_members_that_are_not_known_peers(
    system: ActorSystem, caplog: pytest.LogCaptureFixture
) -> None:
    reports = record_reports(system)
    a, b = spawn_user(system, "A"), spawn_user(system, "B")
    introduce(a, b)
    a.tell(NewChat(actor="Z", room=ChatRoom.of(["A", "B", "Z"])))

    with caplog.at_level(logging.WARNING, logger="chatsim.user.A"):
        outcome = await system.ask(
            a, lambda r: SendMessage(room_id="A_B_Z", text="hi", reply_to=r), timeout=1.0
        )

    assert isinstance(outcome, ActionTaken)
    assert outcome.event.message == "hi"
    assert any("Z" in rec.getMessage() for rec in caplog.records)
    await retry_until(
        lambda: [r.user for r in reports if isinstance(r, MessageReceived)] == ["B"]
    )


async def test_generated_message_text(system: ActorSystem) -> None:
    a, b = spawn_user(system, "A"), spawn_user(system, "B")
    introduce(a, b)
    await system.ask(a, lambda r: CreateChat(members=("B",), reply_to=r), timeout=1.0)

    outcome = await system.ask(a, lambda r: SendMessage(reply_to=r), timeout=1.0)
    assert isinstance(outcome, ActionTaken)
    assert outcome.event.message.startswith("Hello from A at ")


async def test_close_chat_removes_locally_and_notifies_all_peers(system: ActorSystem) -> None:
    reports = record_reports(system)
    a, b, c = (spawn_user(system, uid) for uid in ("A", "B", "C"))
    introduce(a, b, c)
    await system.ask(a, lambda r: CreateChat(members=("B",), reply_to=r), timeout=1.0)

    outcome = await system.ask(a, lambda r: CloseChatRoom(reply_to=r), timeout=1.0)
    assert isinstance(outcome, ActionTaken)
    assert outcome.event.room.id == "A_B"
    assert (await snapshot(system, a)).joined_rooms == ()

    await retry_until(
        lambda: {r.user for r in reports if isinstance(r, CloseAcknowledged)} == {"B", "C"}
    )


async def test_ticking_users_keep_membership_invariant(system: ActorSystem) -> None:
    reports = record_reports(system)
    refs = [
        spawn_user(system, uid, seed=i, tick_interval=0.01, action_range=3)
        for i, uid in enumerate(("A", "B", "C", "D"))
    ]
    introduce(*refs)

    await retry_until(
        lambda: sum(isinstance(r, ActionTaken) for r in reports) >= 10, timeout=3.0
    )

    for ref in refs:
        snap = await snapshot(system, ref)
        assert all(room.has_member(snap.id) for room in snap.joined_rooms)
        assert len(snap.peer_ids) == 3
