"""Behaviors: what an actor does with its next message.

A behavior is an immutable value. Handlers return the behavior for the
following message, so actor state lives in closures instead of fields::

    def counting(n: int) -> Behavior[int]:
        async def on_message(ctx, amount):
            return counting(n + amount)
        return Behaviors.receive(on_message)
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from chatsim.core.cell import ActorContext

type Handler[M] = Callable[[ActorContext[M], M], Awaitable[Behavior[M]]]
type Starter[M] = Callable[[ActorContext[M]], Awaitable[Behavior[M]]]


@dataclass(frozen=True)
class Behavior[M]:
    """A message handler, a deferred start, or neither.

    With ``handler`` set the actor handles messages with it. With ``start``
    set the actor first awaits ``start(ctx)`` for the real behavior. With
    neither set the actor keeps its current handler.
    """

    handler: Handler[M] | None = None
    start: Starter[M] | None = None

    @property
    def keeps_current(self) -> bool:
        return self.handler is None and self.start is None


_SAME: Behavior[Any] = Behavior()


class Behaviors:
    """Constructors for ``Behavior`` values."""

    @staticmethod
    def receive[M](handler: Handler[M]) -> Behavior[M]:
        return Behavior(handler=handler)

    @staticmethod
    def setup[M](start: Starter[M]) -> Behavior[M]:
        """Defer building the behavior until the actor runs and has a context."""
        return Behavior(start=start)

    @staticmethod
    def same() -> Behavior[Any]:
        return _SAME
