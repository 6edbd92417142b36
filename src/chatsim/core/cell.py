"""Actor cells: one asyncio task draining one mailbox.

A cell holds the current handler and nothing else. Every handler call
returns the behavior for the next message. A handler that raises is logged
and published as ``ActorFailed``; the cell keeps the handler it had and
moves on to the next message.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

from chatsim.core.mailbox import Mailbox
from chatsim.core.ref import ActorRef, CellRef

if TYPE_CHECKING:
    from chatsim.core.behavior import Behavior, Handler
    from chatsim.core.system import ActorSystem


@dataclass(frozen=True)
class ActorFailed:
    actor: str
    message: Any
    exception: Exception


class ActorContext[M]:
    """What a handler can reach besides the message itself."""

    def __init__(self, cell: ActorCell[M]) -> None:
        self._cell = cell

    @property
    def self(self) -> ActorRef[M]:
        return self._cell.ref

    @property
    def system(self) -> ActorSystem:
        return self._cell.system

    @property
    def log(self) -> logging.Logger:
        return self._cell.log

    def run_detached(self, fn: Callable[..., Awaitable[Any]], *args: Any) -> None:
        """Start ``fn(*args)`` as a task owned by the system; nobody awaits it."""
        self._cell.system.run_detached(fn, *args)

    def schedule_every(self, interval: float, message: M) -> None:
        """Deliver ``message`` to this actor every ``interval`` seconds until it stops."""
        self._cell.start_timer(interval, message)


class ActorCell[M]:
    def __init__(
        self,
        name: str,
        behavior: Behavior[M],
        system: ActorSystem,
        mailbox: Mailbox[M],
    ) -> None:
        self.name = name
        self.system = system
        self.log = logging.getLogger(f"chatsim.actor.{name}")
        self.ref: ActorRef[M] = CellRef(self)
        self._initial = behavior
        self._mailbox = mailbox
        self._ctx = ActorContext(self)
        self._handler: Handler[M] | None = None
        self._task: asyncio.Task[None] | None = None
        self._timers: list[asyncio.Task[None]] = []
        self._stopped = False

    def enqueue(self, msg: M) -> None:
        if self._stopped:
            self.log.debug("Dropping %r, actor is stopped", msg)
            return
        self._mailbox.put(msg)

    async def enqueue_bounded(self, msg: M) -> None:
        if self._stopped:
            self.log.debug("Dropping %r, actor is stopped", msg)
            return
        await self._mailbox.put_bounded(msg)

    def start(self) -> None:
        self._task = asyncio.get_running_loop().create_task(self._run())

    def start_timer(self, interval: float, message: M) -> None:
        async def repeat() -> None:
            while True:
                await asyncio.sleep(interval)
                self.enqueue(message)

        self._timers.append(asyncio.get_running_loop().create_task(repeat()))

    async def _become(self, behavior: Behavior[M]) -> None:
        while behavior.start is not None:
            behavior = await behavior.start(self._ctx)
        if behavior.handler is not None:
            self._handler = behavior.handler
        elif self._handler is None:
            msg = f"Actor {self.name} has no message handler"
            raise TypeError(msg)

    async def _run(self) -> None:
        try:
            await self._become(self._initial)
        except Exception:
            self.log.exception("Actor %s failed to start", self.name)
            self._stopped = True
            return

        while True:
            msg = await self._mailbox.get()
            try:
                next_behavior = await self._handler(self._ctx, msg)
                if not next_behavior.keeps_current:
                    await self._become(next_behavior)
            except Exception as exc:
                self.log.exception("Actor %s failed handling %r", self.name, msg)
                self.system.publish(ActorFailed(actor=self.name, message=msg, exception=exc))

    async def stop(self) -> None:
        self._stopped = True
        tasks = [*self._timers, *([self._task] if self._task is not None else [])]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._timers.clear()
