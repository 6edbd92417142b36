"""The actor system: spawning, request-reply, events and detached tasks.

Use it as an async context manager so every actor, timer and detached task
is cancelled on exit::

    async with ActorSystem() as system:
        ref = system.spawn(user("user_1"), "user_1")
        snap = await system.ask(ref, lambda r: GetSnapshot(reply_to=r), timeout=1.0)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from chatsim.core.behavior import Behavior
from chatsim.core.cell import ActorCell
from chatsim.core.mailbox import Mailbox
from chatsim.core.ref import ActorRef, reply_ref_for


class ActorSystem:
    def __init__(self, name: str = "chatsim", *, mailbox_capacity: int | None = None) -> None:
        self.name = name
        self.mailbox_capacity = mailbox_capacity
        self._cells: dict[str, ActorCell[Any]] = {}
        self._subscribers: list[tuple[type, ActorRef[Any]]] = []
        self._detached: set[asyncio.Task[Any]] = set()
        self._log = logging.getLogger(f"chatsim.system.{name}")

    async def __aenter__(self) -> ActorSystem:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.shutdown()

    def spawn[M](
        self, behavior: Behavior[M], name: str, *, mailbox: Mailbox[M] | None = None
    ) -> ActorRef[M]:
        """Start an actor named ``name``; its mailbox accepts messages immediately."""
        if name in self._cells:
            raise ValueError(f"Actor '{name}' already exists")
        if mailbox is None:
            mailbox = Mailbox(self.mailbox_capacity)
        cell = ActorCell(name, behavior, self, mailbox)
        self._cells[name] = cell
        cell.start()
        self._log.debug("Spawned %s", name)
        return cell.ref

    async def ask[M, R](
        self,
        ref: ActorRef[M],
        make_request: Callable[[ActorRef[R]], M],
        *,
        timeout: float,
    ) -> R:
        """Send the request built by ``make_request`` and wait for its reply."""
        reply_to = reply_ref_for(asyncio.get_running_loop())
        ref.tell(make_request(reply_to))
        return await asyncio.wait_for(reply_to.future, timeout=timeout)

    def subscribe(self, event_type: type, ref: ActorRef[Any]) -> None:
        """Tell ``ref`` every published event that is an instance of ``event_type``."""
        self._subscribers.append((event_type, ref))

    def publish(self, event: object) -> None:
        for event_type, ref in self._subscribers:
            if isinstance(event, event_type):
                ref.tell(event)

    def run_detached(self, fn: Callable[..., Awaitable[Any]], *args: Any) -> None:
        async def run() -> None:
            try:
                await fn(*args)
            except Exception:
                self._log.exception("Detached task %r failed", fn)

        task = asyncio.get_running_loop().create_task(run())
        self._detached.add(task)
        task.add_done_callback(self._detached.discard)

    async def shutdown(self) -> None:
        self._log.debug("Shutting down %d actors", len(self._cells))
        for cell in list(self._cells.values()):
            await cell.stop()
        self._cells.clear()
        pending = list(self._detached)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
