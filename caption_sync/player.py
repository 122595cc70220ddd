"""Video player collaborator: state codes, protocol, and a simulated player.

WHY: The engine drives an external player it does not own (an embedded
web player, a desktop media widget, ...). It only needs five calls and a
state code, so the contract is a typing.Protocol rather than a base class.

HOW: PlayerState mirrors the YouTube IFrame API state codes, which most
web players imitate. SimulatedPlayer advances a position from a monotonic
clock while playing; the CLI's --follow mode and the session tests use it.

RULES:
- Times are float seconds
- seek_to() does not change the play/pause state
- SimulatedPlayer stops at `duration` and reports ENDED
"""

from __future__ import annotations

import enum
import time
from typing import Callable, List, Optional, Protocol


class PlayerState(enum.IntEnum):
    UNSTARTED = -1
    ENDED = 0
    PLAYING = 1
    PAUSED = 2
    BUFFERING = 3
    CUED = 5


class Player(Protocol):
    """What the engine needs from a video player."""

    def get_current_time(self) -> float: ...

    def seek_to(self, seconds: float, exact: bool) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def get_state(self) -> PlayerState: ...


class SimulatedPlayer:
    """A clock-driven stand-in for a real video player.

    WHY: Lets the engine run end-to-end without a browser or media stack.

    HOW: Keeps the position at the last anchor (play, pause or seek) and
    adds elapsed clock time while PLAYING. State changes are reported to
    every listener registered with add_listener(), like a real player's
    onStateChange event.

    RULES:
    - clock defaults to time.monotonic; tests inject a fake clock
    - duration=None means the video never ends
    """

    def __init__(
        self,
        duration: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._duration = duration
        self._clock = clock
        self._position = 0.0
        self._anchor = clock()
        self._state = PlayerState.UNSTARTED
        self._listeners: List[Callable[[PlayerState], None]] = []

    def add_listener(self, listener: Callable[[PlayerState], None]) -> None:
        self._listeners.append(listener)

    def _set_state(self, state: PlayerState) -> None:
        if state == self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _advance(self) -> float:
        if self._state == PlayerState.PLAYING:
            now = self._clock()
            self._position += now - self._anchor
            self._anchor = now
            if self._duration is not None and self._position >= self._duration:
                self._position = self._duration
                self._set_state(PlayerState.ENDED)
        return self._position

    def get_current_time(self) -> float:
        return self._advance()

    def seek_to(self, seconds: float, exact: bool = True) -> None:
        self._advance()
        self._position = max(0.0, seconds)
        if self._duration is not None:
            self._position = min(self._position, self._duration)
        self._anchor = self._clock()
        if self._state == PlayerState.ENDED:
            self._set_state(PlayerState.PAUSED)

    def play(self) -> None:
        self._advance()
        self._anchor = self._clock()
        self._set_state(PlayerState.PLAYING)

    def pause(self) -> None:
        self._advance()
        self._set_state(PlayerState.PAUSED)

    def get_state(self) -> PlayerState:
        self._advance()
        return self._state
