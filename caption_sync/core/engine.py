"""Engine state and its transition functions.

WHY: Playback time, the caption index, the repeat pin, the scroll
suppression and the auto-scroll flag all feed one decision per clock
sample. Keeping them in one value and changing them only through
explicit transition functions makes ordering and idempotence testable
without any UI framework or real timers.

HOW: EngineState is a frozen dataclass. Every event (clock sample,
caption click, key press, player notification, scroll, fetch) is a
function (state, ...) -> (next_state, commands). The session applies the
next state and executes the commands in order.

RULES:
- A tick is resolved completely (resolver, loop boundary, scroll gate)
  inside one call
- With an empty caption index every event except fetch/toggles is a no-op
- Toggling auto-scroll never touches the scroll suppression
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Mapping, Optional, Tuple

from caption_sync.config import DEFAULT_KEY_BINDINGS, KeyAction
from caption_sync.core import repeat as repeat_loop
from caption_sync.core import scroll as scroll_sync
from caption_sync.core.captions import CaptionIndex
from caption_sync.core.commands import (
    CancelPauseConfirm,
    Command,
    Pause,
    Play,
    ScrollTo,
    StartScrollCooldown,
)
from caption_sync.core.repeat import IDLE, RepeatState
from caption_sync.core.resolver import resolve_active_index
from caption_sync.core.scroll import ScrollSuppression
from caption_sync.player import PlayerState


@dataclass(frozen=True)
class EngineState:
    """Everything the engine knows between two events."""

    captions: CaptionIndex = field(default_factory=CaptionIndex)
    current_time: float = 0.0
    active_index: Optional[int] = None
    repeat: RepeatState = IDLE
    scroll: ScrollSuppression = field(default_factory=ScrollSuppression)
    auto_scroll: bool = True


Transition = Tuple[EngineState, List[Command]]


def _scroll_commands(state: EngineState, target: Optional[int]) -> List[Command]:
    if scroll_sync.should_auto_scroll(target, state.auto_scroll, state.scroll, state.repeat):
        return [ScrollTo(target)]
    return []


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


def on_tick(state: EngineState, time: float, loop_epsilon: float) -> Transition:
    """Process one clock sample.

    HOW: Publish the time, resolve the active caption, then run the loop
    boundary check.

    RULES:
    - An active-index change emits ScrollTo only when the scroll gate allows
    - The boundary check runs on every sample while looping, even when the
      active index did not change
    """
    state = replace(state, current_time=time)
    if not state.captions:
        return state, []

    commands: List[Command] = []
    new_index = resolve_active_index(time, state.captions, state.active_index, state.repeat)
    if new_index is not None:
        state = replace(state, active_index=new_index)
        commands.extend(_scroll_commands(state, new_index))

    commands.extend(repeat_loop.check_boundary(state.repeat, time, loop_epsilon))
    return state, commands


# ---------------------------------------------------------------------------
# User interaction
# ---------------------------------------------------------------------------


def on_caption_click(state: EngineState, index: int) -> Transition:
    """Loop the clicked caption from its start and make it active."""
    if not 0 <= index < len(state.captions):
        return state, []
    repeat, commands = repeat_loop.engage(state.repeat, state.captions[index], index)
    state = replace(state, repeat=repeat, active_index=index)
    commands.extend(_scroll_commands(state, index))
    return state, commands


def on_toggle_repeat(state: EngineState) -> Transition:
    repeat, commands = repeat_loop.toggle(state.repeat, state.active_index, state.captions)
    return replace(state, repeat=repeat), commands


def on_toggle_auto_scroll(state: EngineState) -> Transition:
    return replace(state, auto_scroll=not state.auto_scroll), []


def on_toggle_play(state: EngineState, player_state: PlayerState) -> Transition:
    """Play/pause passthrough; the engine state itself does not change."""
    if player_state == PlayerState.PLAYING:
        return state, [Pause()]
    return state, [Play()]


def on_key(
    state: EngineState,
    key: str,
    player_state: PlayerState,
    bindings: Optional[Mapping[str, KeyAction]] = None,
) -> Transition:
    """Dispatch a key press. Unbound keys are ignored; matching is case-insensitive."""
    table = bindings if bindings is not None else DEFAULT_KEY_BINDINGS
    action = {name.lower(): bound for name, bound in table.items()}.get(key.lower())
    if action == KeyAction.TOGGLE_PLAY:
        return on_toggle_play(state, player_state)
    if action == KeyAction.TOGGLE_REPEAT:
        return on_toggle_repeat(state)
    if action == KeyAction.TOGGLE_AUTO_SCROLL:
        return on_toggle_auto_scroll(state)
    return state, []


def on_user_scroll(state: EngineState, now: float, cooldown: float) -> Transition:
    scroll = scroll_sync.note_user_scroll(now, cooldown)
    return replace(state, scroll=scroll), [StartScrollCooldown(scroll.cooldown_deadline)]


def on_scroll_cooldown_expired(state: EngineState, now: float) -> Transition:
    return replace(state, scroll=scroll_sync.expire(state.scroll, now)), []


# ---------------------------------------------------------------------------
# Player notifications
# ---------------------------------------------------------------------------


def on_player_state(state: EngineState, player_state: PlayerState) -> Transition:
    if player_state != PlayerState.PAUSED:
        return state, []
    repeat, commands = repeat_loop.on_paused(state.repeat)
    return replace(state, repeat=repeat), commands


def on_pause_confirm(state: EngineState, player_state: PlayerState) -> Transition:
    repeat, commands = repeat_loop.confirm_pause(state.repeat, player_state)
    return replace(state, repeat=repeat), commands


# ---------------------------------------------------------------------------
# Transcript lifecycle
# ---------------------------------------------------------------------------


def on_fetch_started(state: EngineState) -> Transition:
    """Discard the old captions and repeat pin before a new fetch."""
    commands: List[Command] = [CancelPauseConfirm()] if state.repeat.pending_pause_confirm else []
    return replace(state, captions=CaptionIndex(), active_index=None, repeat=IDLE), commands


def on_captions_loaded(state: EngineState, captions: CaptionIndex) -> Transition:
    return replace(state, captions=captions, active_index=None, repeat=IDLE), []
