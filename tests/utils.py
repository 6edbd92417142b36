"""Test utilities for chatsim tests."""

from __future__ import annotations

import asyncio
import random
import time
from collections.abc import Awaitable, Callable
from typing import Any

from chatsim import (
    ActorContext,
    ActorRef,
    ActorSystem,
    Behavior,
    Behaviors,
    GetSnapshot,
    Report,
    UserHandle,
    UserMsg,
    UserSnapshot,
    user,
)


async def retry_until(
    condition: Callable[[], bool | Awaitable[bool]],
    *,
    timeout: float = 2.0,
    interval: float = 0.01,
    message: str = "Condition not met within timeout",
) -> None:
    """Wait until a condition is met, with timeout.

    Raises:
        TimeoutError: If condition is not met within timeout
    """
    start = time.monotonic()
    while time.monotonic() - start < timeout:
        result = condition()

        if asyncio.iscoroutine(result):
            result = await result

        if result:
            return

        await asyncio.sleep(interval)
    raise TimeoutError(message)


async def settle(delay: float = 0.05) -> None:
    """Give fire-and-forget deliveries time to land."""
    await asyncio.sleep(delay)


def collector(results: list[Any]) -> Behavior[Any]:
    async def receive(ctx: ActorContext[Any], msg: Any) -> Behavior[Any]:
        results.append(msg)
        return Behaviors.same()

    return Behaviors.receive(receive)


def spawn_user(
    system: ActorSystem,
    user_id: str,
    *,
    seed: int = 0,
    tick_interval: float | None = None,
    action_range: int = 10,
) -> ActorRef[UserMsg]:
    """Spawn a user that only acts when told to, unless ``tick_interval`` is set."""
    return system.spawn(
        user(
            user_id,
            rng=random.Random(seed),
            tick_interval=tick_interval,
            action_range=action_range,
        ),
        user_id,
    )


def introduce(*refs: ActorRef[UserMsg]) -> dict[str, UserHandle]:
    """Tell every user about every other user, as the simulation bootstrap does."""
    handles = [UserHandle.for_ref(ref) for ref in refs]
    for handle in handles:
        for other in handles:
            if other.id != handle.id:
                handle.presence.tell(other)
    return {handle.id: handle for handle in handles}


async def snapshot(system: ActorSystem, ref: ActorRef[UserMsg]) -> UserSnapshot:
    return await system.ask(ref, lambda r: GetSnapshot(reply_to=r), timeout=1.0)


def record_reports(system: ActorSystem, name: str = "recorder") -> list[Report]:
    """Collect every report the system publishes."""
    reports: list[Report] = []
    system.subscribe(Report, system.spawn(collector(reports), name))
    return reports
