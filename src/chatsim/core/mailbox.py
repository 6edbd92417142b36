"""Per-actor FIFO mailbox.

All messages share one queue, so every channel keeps its order. Only chat
events delivered with ``put_bounded`` count against ``capacity``; presence,
ticks, commands and replies go through ``put`` and are never refused or
delayed. A full mailbox therefore only makes the task delivering a chat
event wait.
"""

from __future__ import annotations

import asyncio


class Mailbox[M]:
    def __init__(self, capacity: int | None = None) -> None:
        if capacity is not None and capacity < 1:
            msg = f"mailbox capacity must be positive, got {capacity}"
            raise ValueError(msg)
        self._capacity = capacity
        self._queue: asyncio.Queue[tuple[M, bool]] = asyncio.Queue()
        self._room = asyncio.Semaphore(capacity) if capacity is not None else None
        self._bounded_pending = 0

    @property
    def capacity(self) -> int | None:
        return self._capacity

    @property
    def bounded_pending(self) -> int:
        """Queued messages that were delivered with ``put_bounded``."""
        return self._bounded_pending

    def put(self, msg: M) -> None:
        self._queue.put_nowait((msg, False))

    async def put_bounded(self, msg: M) -> None:
        """Enqueue ``msg``, first waiting for room when a capacity is set."""
        if self._room is None:
            self.put(msg)
            return
        await self._room.acquire()
        self._bounded_pending += 1
        self._queue.put_nowait((msg, True))

    async def get(self) -> M:
        msg, counted = await self._queue.get()
        if counted and self._room is not None:
            self._bounded_pending -= 1
            self._room.release()
        return msg
