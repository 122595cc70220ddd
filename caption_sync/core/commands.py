"""Side-effect commands emitted by the engine's transition functions.

WHY: The transition functions in engine.py are pure. Anything that must
touch the outside world (the player, the caption list view, a timer) is
returned as a command for the session to execute, in order.

RULES:
- Commands are immutable values; equality is structural
- The session executes commands in the order they are returned
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Seek:
    """Seek the player to time (seconds). Arms the seek-settle guard."""

    time: float
    exact: bool = True


@dataclass(frozen=True)
class Play:
    pass


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class ScrollTo:
    """Scroll the caption list so caption `index` is visible."""

    index: int


@dataclass(frozen=True)
class StartPauseConfirm:
    """Arm the pause-confirmation timer (see repeat.on_paused)."""


@dataclass(frozen=True)
class CancelPauseConfirm:
    """Disarm a pending pause-confirmation timer."""


@dataclass(frozen=True)
class StartScrollCooldown:
    """(Re)arm the user-scroll cooldown timer, expiring at `deadline`."""

    deadline: float


Command = Union[
    Seek, Play, Pause, ScrollTo, StartPauseConfirm, CancelPauseConfirm, StartScrollCooldown
]
