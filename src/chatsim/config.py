"""TOML-based configuration for chat simulations.

Provides ``load_config`` / ``discover_config`` for loading ``chatsim.toml``
and a small hierarchy of frozen dataclasses for the simulation, mailbox and
logging settings.

Example ``chatsim.toml``::

    [system]
    name = "chatsim"

    [simulation]
    users = 6
    tick_interval = 0.5
    seed = 42

    [mailbox]
    capacity = 256

    [logging]
    level = "DEBUG"
    color = false
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from chatsim.errors import ConfigError


__all__ = [
    "CONFIG_FILENAME",
    "ChatSimConfig",
    "LoggingConfig",
    "MailboxConfig",
    "MIN_USERS",
    "SimulationConfig",
    "discover_config",
    "load_config",
]

CONFIG_FILENAME = "chatsim.toml"
MIN_USERS = 2


@dataclass(frozen=True)
class SimulationConfig:
    """Population and pacing of the simulation.

    Parameters
    ----------
    users : int
        Number of simulated users, at least 2.
    tick_interval : float
        Seconds between each user's decision ticks.
    action_range : int
        Size of the range a tick's decision code is drawn from; codes 0-2
        trigger actions, the rest are no-ops. At least 3.
    seed : int | None
        Base seed; user ``i`` gets ``random.Random(seed + i)``.
    duration : float | None
        Seconds to run. ``None`` runs until interrupted.

    Examples
    --------
    >>> SimulationConfig(users=8, seed=1)
    SimulationConfig(users=8, tick_interval=1.0, action_range=10, seed=1, duration=None)
    """

    users: int = 4
    tick_interval: float = 1.0
    action_range: int = 10
    seed: int | None = None
    duration: float | None = None

    def __post_init__(self) -> None:
        if self.users < MIN_USERS:
            msg = f"users must be at least {MIN_USERS}, got {self.users}"
            raise ConfigError(msg)
        if self.tick_interval <= 0:
            msg = f"tick_interval must be positive, got {self.tick_interval}"
            raise ConfigError(msg)
        if self.action_range < 3:
            msg = f"action_range must be at least 3, got {self.action_range}"
            raise ConfigError(msg)
        if self.duration is not None and self.duration <= 0:
            msg = f"duration must be positive, got {self.duration}"
            raise ConfigError(msg)


@dataclass(frozen=True)
class MailboxConfig:
    """Mailbox settings applied to every user.

    Parameters
    ----------
    capacity : int | None
        Maximum chat events queued for one user. A peer delivering an event
        to a full mailbox waits for room; presence, ticks and replies are
        never held back. ``None`` for unbounded.
    """

    capacity: int | None = None

    def __post_init__(self) -> None:
        if self.capacity is not None and self.capacity < 1:
            msg = f"mailbox capacity must be positive, got {self.capacity}"
            raise ConfigError(msg)


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    color: bool = True

    def __post_init__(self) -> None:
        if not isinstance(logging.getLevelName(self.level.upper()), int):
            msg = f"unknown log level {self.level!r}"
            raise ConfigError(msg)


@dataclass(frozen=True)
class ChatSimConfig:
    """Top-level configuration container.

    Typically created via ``load_config()`` but can be constructed manually.

    Examples
    --------
    >>> config = ChatSimConfig(simulation=SimulationConfig(users=3))
    >>> config.simulation.users
    3
    """

    system_name: str = "chatsim"
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    mailbox: MailboxConfig = field(default_factory=MailboxConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def with_overrides(self, **simulation: Any) -> ChatSimConfig:
        """Return a copy with the non-``None`` simulation fields replaced."""
        changes = {k: v for k, v in simulation.items() if v is not None}
        if not changes:
            return self
        return replace(self, simulation=replace(self.simulation, **changes))


def discover_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for ``chatsim.toml``.

    Examples
    --------
    >>> discover_config(Path("/my/project"))
    PosixPath('/my/project/chatsim.toml')
    """
    current = start or Path.cwd()
    current = current.resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(path: Path | None = None) -> ChatSimConfig:
    """Load a ``ChatSimConfig`` from a TOML file.

    If *path* is ``None``, auto-discovers ``chatsim.toml`` by walking up
    from the current working directory. Returns the default config if no
    file is found.

    Raises
    ------
    FileNotFoundError
        If an explicit *path* is given but does not exist.
    ConfigError
        If the file is not valid TOML, or holds unknown keys or invalid
        values.
    """
    if path is None:
        discovered = discover_config()
        if discovered is None:
            return ChatSimConfig()
        path = discovered

    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    try:
        with path.open("rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Malformed config in {path}: {exc}"
        raise ConfigError(msg) from exc

    system_raw = raw.get("system", {})

    try:
        return ChatSimConfig(
            system_name=system_raw.get("name", "chatsim"),
            simulation=SimulationConfig(**raw.get("simulation", {})),
            mailbox=MailboxConfig(**raw.get("mailbox", {})),
            logging=LoggingConfig(**raw.get("logging", {})),
        )
    except TypeError as exc:
        msg = f"Invalid config in {path}: {exc}"
        raise ConfigError(msg) from exc
