"""Actor references.

``tell`` enqueues immediately and is never refused. ``send`` is the path for
chat traffic: it may wait while the target's mailbox is at its bound, so it
is always awaited from a detached task rather than from a handler.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from chatsim.core.cell import ActorCell


class ActorRef[M](Protocol):
    @property
    def id(self) -> str: ...

    def tell(self, msg: M) -> None: ...

    async def send(self, msg: M) -> None: ...


@dataclass(frozen=True)
class CellRef[M]:
    """Reference to an actor running in this process."""

    cell: ActorCell[M]

    @property
    def id(self) -> str:
        return self.cell.name

    def tell(self, msg: M) -> None:
        self.cell.enqueue(msg)

    async def send(self, msg: M) -> None:
        await self.cell.enqueue_bounded(msg)


@dataclass(frozen=True)
class AdaptedRef[T, M]:
    """Reference that wraps every message with ``adapt`` before delivery.

    Lets one actor expose a narrowly typed channel, e.g. a user's presence
    channel accepts ``UserHandle`` and the user receives ``PeerOnline``.
    """

    inner: ActorRef[M]
    adapt: Callable[[T], M]

    @property
    def id(self) -> str:
        return self.inner.id

    def tell(self, msg: T) -> None:
        self.inner.tell(self.adapt(msg))

    async def send(self, msg: T) -> None:
        await self.inner.send(self.adapt(msg))


@dataclass(frozen=True)
class ReplyRef[R]:
    """One-shot reference completing a future; the reply side of ``ask``."""

    future: asyncio.Future[R]

    @property
    def id(self) -> str:
        return f"_reply/{id(self.future):x}"

    def tell(self, msg: R) -> None:
        if not self.future.done():
            self.future.set_result(msg)

    async def send(self, msg: R) -> None:
        self.tell(msg)


def reply_ref_for(loop: asyncio.AbstractEventLoop) -> ReplyRef[Any]:
    return ReplyRef(loop.create_future())
