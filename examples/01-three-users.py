"""
Three Users, One Room
=====================

Drives three users by hand instead of letting them tick: ``A`` opens a room
with ``B``, says something, and ``B`` closes it. ``C`` only ever sees the
room go by.

Demonstrates:
  - ``UserHandle`` presence introductions
  - ``CreateChat`` / ``SendMessage`` / ``CloseChatRoom`` commands with ``ask``
  - ``GetSnapshot`` to read a user's local view

Usage:
    uv run python examples/01-three-users.py
"""

from __future__ import annotations

import asyncio
import random

from chatsim import (
    ActorSystem,
    CloseChatRoom,
    CreateChat,
    GetSnapshot,
    SendMessage,
    UserHandle,
    user,
)
from chatsim.console import configure_logging


async def main() -> None:
    async with ActorSystem() as system:
        refs = {
            uid: system.spawn(user(uid, rng=random.Random(i), tick_interval=None), uid)
            for i, uid in enumerate(("A", "B", "C"))
        }
        handles = [UserHandle.for_ref(ref) for ref in refs.values()]
        for handle in handles:
            for other in handles:
                if other.id != handle.id:
                    handle.presence.tell(other)

        await system.ask(refs["A"], lambda r: CreateChat(members=("B",), reply_to=r), timeout=1.0)
        await asyncio.sleep(0.1)
        await system.ask(
            refs["A"], lambda r: SendMessage(room_id="A_B", text="hi B", reply_to=r), timeout=1.0
        )
        await asyncio.sleep(0.1)
        await system.ask(refs["B"], lambda r: CloseChatRoom(room_id="A_B", reply_to=r), timeout=1.0)
        await asyncio.sleep(0.1)

        for uid, ref in refs.items():
            snap = await system.ask(ref, lambda r: GetSnapshot(reply_to=r), timeout=1.0)
            print(f"{uid}: peers={list(snap.peer_ids)} rooms={sorted(snap.room_ids)}")


if __name__ == "__main__":
    configure_logging("INFO")
    asyncio.run(main())
