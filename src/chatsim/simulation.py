"""Simulation bootstrap.

Spawns ``user_1 … user_N``, introduces every pair of users to each other
through their presence channels, and then lets them run until stopped.
Presence messages are enqueued as each user is spawned, ahead of the first
tick, so every user knows all of its peers before it acts.
"""

from __future__ import annotations

import asyncio
import logging
import random

from chatsim.config import ChatSimConfig
from chatsim.core.system import ActorSystem
from chatsim.user import UserHandle, user

logger = logging.getLogger("chatsim.simulation")


def user_id_for(index: int) -> str:
    return f"user_{index}"


class Simulation:
    """A population of chat users sharing one actor system.

    Examples
    --------
    >>> async with Simulation(config) as sim:
    ...     sim.spawn_users()
    ...     await sim.run(duration=5.0)
    """

    def __init__(self, config: ChatSimConfig | None = None) -> None:
        self._config = config if config is not None else ChatSimConfig()
        self._system: ActorSystem | None = None
        self._users: dict[str, UserHandle] = {}
        self._done = asyncio.Event()

    @property
    def config(self) -> ChatSimConfig:
        return self._config

    @property
    def system(self) -> ActorSystem:
        if self._system is None:
            msg = "Simulation is not running; use it as an async context manager"
            raise RuntimeError(msg)
        return self._system

    @property
    def users(self) -> dict[str, UserHandle]:
        return dict(self._users)

    async def __aenter__(self) -> Simulation:
        self._system = ActorSystem(
            self._config.system_name, mailbox_capacity=self._config.mailbox.capacity
        )
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.shutdown()

    def _rng_for(self, index: int) -> random.Random:
        seed = self._config.simulation.seed
        if seed is None:
            return random.Random()
        return random.Random(seed + index)

    def spawn_users(self) -> list[UserHandle]:
        """Spawn every configured user and cross-register their presence."""
        settings = self._config.simulation
        logger.info("Starting a chat sim with %d users", settings.users)
        for index in range(1, settings.users + 1):
            user_id = user_id_for(index)
            ref = self.system.spawn(
                user(
                    user_id,
                    rng=self._rng_for(index),
                    tick_interval=settings.tick_interval,
                    action_range=settings.action_range,
                ),
                user_id,
            )
            handle = UserHandle.for_ref(ref, user_id)
            for existing in self._users.values():
                handle.presence.tell(existing)
                existing.presence.tell(handle)
            self._users[user_id] = handle
        return list(self._users.values())

    def stop(self) -> None:
        """Release ``run()``."""
        self._done.set()

    async def run(self, duration: float | None = None) -> None:
        """Wait until ``stop()`` is called or ``duration`` seconds pass."""
        if duration is None:
            await self._done.wait()
            return
        try:
            await asyncio.wait_for(self._done.wait(), timeout=duration)
        except asyncio.TimeoutError:
            logger.info("Simulation finished after %.1fs", duration)

    async def shutdown(self) -> None:
        self._done.set()
        if self._system is not None:
            await self._system.shutdown()
            self._system = None


async def run_simulation(config: ChatSimConfig | None = None) -> None:
    """Run a full simulation as described by *config*."""
    async with Simulation(config) as sim:
        sim.spawn_users()
        await sim.run(sim.config.simulation.duration)
