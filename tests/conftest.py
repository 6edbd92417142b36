"""Shared fixtures for chatsim tests."""

from __future__ import annotations

import pytest

from chatsim import ActorSystem


@pytest.fixture
async def system():
    """Create and clean up an ActorSystem."""
    async with ActorSystem() as sys:
        yield sys
