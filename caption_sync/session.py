"""Caption session: the asyncio runtime around the pure engine.

WHY: The engine's transition functions decide what should happen; someone
has to sample the player, run the timers, call the player and tell the UI
to scroll. CaptionSession is that single owner, so every timer handle and
every mutable flag lives in one object and nothing is global.

HOW: All handlers run on one asyncio event loop. Each handler calls one
engine transition, stores the next EngineState, and executes the returned
commands in order. Four owned asyncio tasks act as timers:
  poll task           — samples player.get_current_time() every poll interval
  seek guard          — discards samples for seek_settle_s after a seek
  pause confirmation  — decides user pause vs. transient pause while looping
  scroll cooldown     — clears user_scrolling after a quiet period
Re-arming any of them cancels the previous task first.

RULES:
- Exactly one poll task per session; attach_player() replaces it
- Every programmatic seek sets the seek guard before calling the player
- Samples taken while the guard is set are dropped, not published
- Events with no player attached, or with no captions, are no-ops
- close() cancels the poll task and every timer; later events are no-ops
- A superseded fetch never overwrites the captions of a newer one
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from functools import partial
from typing import Callable, List, Mapping, Optional

from caption_sync.api.client import (
    InvalidVideoError,
    TranscriptClient,
    TranscriptFetchError,
    validate_video_url,
)
from caption_sync.config import DEFAULT_KEY_BINDINGS, EngineTimings, KeyAction
from caption_sync.core import engine
from caption_sync.core.captions import CaptionIndex, CaptionSegment
from caption_sync.core.commands import (
    CancelPauseConfirm,
    Command,
    Pause,
    Play,
    ScrollTo,
    Seek,
    StartPauseConfirm,
    StartScrollCooldown,
)
from caption_sync.core.engine import EngineState
from caption_sync.core.repeat import RepeatState
from caption_sync.player import Player, PlayerState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session for the UI."""

    current_time: float
    active_index: Optional[int]
    repeat: RepeatState
    auto_scroll: bool
    user_scrolling: bool
    caption_count: int
    loading: bool
    error: Optional[str]

    @property
    def repeat_segment(self) -> Optional[CaptionSegment]:
        return self.repeat.segment if self.repeat.active else None

    def repeat_text(self, key: str) -> str:
        """Text of the looping caption in one language ("" when not looping)."""
        segment = self.repeat_segment
        return segment.text(key) if segment is not None else ""


def _cancel(task: Optional[asyncio.Task]) -> None:
    if task is not None and not task.done():
        task.cancel()


async def _after(delay: float, callback: Callable[[], None]) -> None:
    await asyncio.sleep(delay)
    callback()


class CaptionSession:
    """One player + one caption list, kept in sync.

    RULES:
    - Must be used from inside a running asyncio event loop
    - on_scroll receives each ScrollTo index (the scroll command stream)
    - on_active_change receives the new active index whenever it changes
    """

    def __init__(
        self,
        timings: Optional[EngineTimings] = None,
        key_bindings: Optional[Mapping[str, KeyAction]] = None,
        on_scroll: Optional[Callable[[int], None]] = None,
        on_active_change: Optional[Callable[[Optional[int]], None]] = None,
    ) -> None:
        self._timings = timings or EngineTimings()
        self._key_bindings = {
            key.lower(): action
            for key, action in (key_bindings or DEFAULT_KEY_BINDINGS).items()
        }
        self._on_scroll = on_scroll
        self._on_active_change = on_active_change

        self._state = EngineState()
        self._player: Optional[Player] = None
        self._seeking = False
        self._loading = False
        self._closed = False
        self._error: Optional[str] = None
        self._fetch_generation = 0

        self._poll_task: Optional[asyncio.Task] = None
        self._seek_guard_task: Optional[asyncio.Task] = None
        self._pause_confirm_task: Optional[asyncio.Task] = None
        self._scroll_cooldown_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def captions(self) -> CaptionIndex:
        return self._state.captions

    @property
    def active_index(self) -> Optional[int]:
        return self._state.active_index

    @property
    def repeat(self) -> RepeatState:
        return self._state.repeat

    @property
    def seeking(self) -> bool:
        return self._seeking

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def player(self) -> Optional[Player]:
        return self._player

    def snapshot(self) -> SessionSnapshot:
        state = self._state
        return SessionSnapshot(
            current_time=state.current_time,
            active_index=state.active_index,
            repeat=state.repeat,
            auto_scroll=state.auto_scroll,
            user_scrolling=state.scroll.user_scrolling,
            caption_count=len(state.captions),
            loading=self._loading,
            error=self._error,
        )

    # ------------------------------------------------------------------
    # Player lifecycle
    # ------------------------------------------------------------------

    def attach_player(self, player: Player) -> None:
        """Player-ready notification: start sampling this player.

        Any previous poll task is cancelled first, so a repeated ready
        event never leaves two samplers running.
        """
        _cancel(self._poll_task)
        self._player = player
        self._closed = False
        self._poll_task = asyncio.get_running_loop().create_task(self._poll_loop())
        logger.debug("Player attached; sampling every %.3fs", self._timings.poll_interval_s)

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self._timings.poll_interval_s)
            try:
                self.sample()
            except Exception:
                logger.exception("Clock sample failed")

    def sample(self) -> None:
        """Read the player's clock once and run a tick."""
        if self._player is None or self._seeking:
            return
        current = self._player.get_current_time()
        self._dispatch(engine.on_tick(self._state, current, self._timings.loop_epsilon_s))

    def on_player_state_change(self, player_state: PlayerState) -> None:
        """State-change notification from the player."""
        if self._player is None:
            logger.debug("Ignoring player state %s before ready", player_state)
            return
        self._dispatch(engine.on_player_state(self._state, PlayerState(player_state)))

    def close(self) -> None:
        """Cancel the poll task and all timers, and detach the player.

        Events arriving after close() are ignored until attach_player()
        is called again.
        """
        for task in (
            self._poll_task,
            self._seek_guard_task,
            self._pause_confirm_task,
            self._scroll_cooldown_task,
        ):
            _cancel(task)
        self._poll_task = None
        self._seek_guard_task = None
        self._pause_confirm_task = None
        self._scroll_cooldown_task = None
        self._player = None
        self._closed = True
        self._seeking = False
        self._loading = False
        self._fetch_generation += 1
        logger.debug("Session closed")

    # ------------------------------------------------------------------
    # User interaction
    # ------------------------------------------------------------------

    def click_caption(self, index: int) -> None:
        if self._player is None:
            logger.debug("Ignoring click on caption %d before player ready", index)
            return
        self._dispatch(engine.on_caption_click(self._state, index))

    def toggle_repeat(self) -> None:
        self._dispatch(engine.on_toggle_repeat(self._state))

    def toggle_auto_scroll(self) -> None:
        self._dispatch(engine.on_toggle_auto_scroll(self._state))

    def toggle_play(self) -> None:
        if self._player is None:
            return
        self._dispatch(engine.on_toggle_play(self._state, self._player.get_state()))

    def handle_key(self, key: str) -> bool:
        """Handle a key press. Returns True if the key is bound."""
        if key.lower() not in self._key_bindings:
            return False
        player_state = self._player.get_state() if self._player is not None else PlayerState.UNSTARTED
        self._dispatch(engine.on_key(self._state, key, player_state, self._key_bindings))
        return True

    def user_scrolled(self) -> None:
        """A user-originated scroll of the caption list."""
        now = asyncio.get_running_loop().time()
        self._dispatch(engine.on_user_scroll(self._state, now, self._timings.scroll_cooldown_s))

    # ------------------------------------------------------------------
    # Transcript loading
    # ------------------------------------------------------------------

    async def load_transcript(self, client: TranscriptClient, video_url: str) -> bool:
        """Fetch captions for a video and install them.

        WHY: A new transcript replaces the captions and the repeat pin
        wholesale; the clock and the scroll suppression carry over.

        HOW: Validates the URL, resets captions and repeat, fetches, and
        installs the new index unless a newer fetch (or close()) has
        started in the meantime.

        RULES:
        - Input errors set error and change no engine state
        - Fetch errors leave the captions empty and repeat Idle
        - Returns True only when captions were installed
        """
        if self._closed:
            logger.debug("Ignoring transcript load after close")
            return False
        try:
            video_url = validate_video_url(video_url)
        except InvalidVideoError as exc:
            self._error = str(exc)
            return False

        self._fetch_generation += 1
        generation = self._fetch_generation
        self._dispatch(engine.on_fetch_started(self._state))
        self._error = None
        self._loading = True
        try:
            captions = await client.fetch_captions(video_url)
        except TranscriptFetchError as exc:
            if generation == self._fetch_generation:
                self._error = str(exc)
            return False
        finally:
            if generation == self._fetch_generation:
                self._loading = False

        if generation != self._fetch_generation:
            logger.debug("Discarding captions from superseded fetch of %s", video_url)
            return False
        self._dispatch(engine.on_captions_loaded(self._state, captions))
        return True

    # ------------------------------------------------------------------
    # Command execution
    # ------------------------------------------------------------------

    def _dispatch(self, transition: engine.Transition) -> None:
        if self._closed:
            logger.debug("Ignoring event after close")
            return
        previous_active = self._state.active_index
        self._state, commands = transition
        if self._state.active_index != previous_active and self._on_active_change:
            self._on_active_change(self._state.active_index)
        self._execute(commands)

    def _execute(self, commands: List[Command]) -> None:
        for command in commands:
            if isinstance(command, Seek):
                self._seek(command)
            elif isinstance(command, Play):
                if self._player is not None:
                    self._player.play()
            elif isinstance(command, Pause):
                if self._player is not None:
                    self._player.pause()
            elif isinstance(command, ScrollTo):
                if self._on_scroll:
                    self._on_scroll(command.index)
            elif isinstance(command, StartPauseConfirm):
                self._pause_confirm_task = self._arm(
                    self._pause_confirm_task, self._timings.pause_confirm_s, self._confirm_pause
                )
            elif isinstance(command, CancelPauseConfirm):
                _cancel(self._pause_confirm_task)
                self._pause_confirm_task = None
            elif isinstance(command, StartScrollCooldown):
                delay = max(0.0, command.deadline - asyncio.get_running_loop().time())
                self._scroll_cooldown_task = self._arm(
                    self._scroll_cooldown_task, delay, partial(self._expire_scroll, command.deadline)
                )

    @staticmethod
    def _arm(
        current: Optional[asyncio.Task], delay: float, callback: Callable[[], None]
    ) -> asyncio.Task:
        _cancel(current)
        return asyncio.get_running_loop().create_task(_after(delay, callback))

    def _seek(self, command: Seek) -> None:
        if self._player is None:
            return
        self._seeking = True
        self._seek_guard_task = self._arm(
            self._seek_guard_task, self._timings.seek_settle_s, self._end_seek
        )
        self._state = replace(self._state, current_time=command.time)
        self._player.seek_to(command.time, command.exact)

    def _end_seek(self) -> None:
        self._seeking = False
        self._seek_guard_task = None

    def _confirm_pause(self) -> None:
        self._pause_confirm_task = None
        if self._player is None:
            return
        self._dispatch(engine.on_pause_confirm(self._state, self._player.get_state()))

    def _expire_scroll(self, deadline: float) -> None:
        # The event loop may fire a timer up to one clock tick early, so the
        # armed deadline stands in for "now".
        self._scroll_cooldown_task = None
        now = max(deadline, asyncio.get_running_loop().time())
        self._dispatch(engine.on_scroll_cooldown_expired(self._state, now))
