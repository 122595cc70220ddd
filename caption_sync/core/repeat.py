"""Repeat-loop state machine: pin playback to one caption segment.

WHY: Language learners replay one caption over and over. The loop must
rewind at the segment end, survive the transient pause notifications that
seeking can produce, and still stop when the user genuinely pauses.

HOW: RepeatState is a frozen value with three logical states:
  Idle                          — active False, segment_index -1
  Looping                       — active True, pending_pause_confirm False
  Looping.PendingPauseConfirm   — active True, pending_pause_confirm True
Each transition function takes the current state and returns the next
state plus the commands (seek/play/timer) the session must run.

RULES:
- segment_index is -1 if and only if the state is Idle
- Engaging always seeks (exact) to segment.start and commands play
- Disengaging never seeks
- A loop re-seeks once time >= segment.end - epsilon, staying Looping
- A pause while Looping only becomes Idle if the player is still paused
  when the confirmation timer fires; otherwise the loop is resumed
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from caption_sync.core.captions import CaptionIndex, CaptionSegment
from caption_sync.core.commands import (
    CancelPauseConfirm,
    Command,
    Play,
    Seek,
    StartPauseConfirm,
)
from caption_sync.player import PlayerState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepeatState:
    """Snapshot of the repeat loop."""

    active: bool = False
    segment: Optional[CaptionSegment] = None
    segment_index: int = -1
    pending_pause_confirm: bool = False


IDLE = RepeatState()

Transition = Tuple[RepeatState, List[Command]]


def engage(repeat: RepeatState, segment: CaptionSegment, index: int) -> Transition:
    """Start looping `segment` (at position `index`) from its beginning."""
    commands: List[Command] = []
    if repeat.pending_pause_confirm:
        commands.append(CancelPauseConfirm())
    logger.debug("Repeat engaged on caption %d (%.2fs-%.2fs)", index, segment.start, segment.end)
    commands.extend([Seek(segment.start, exact=True), Play()])
    return RepeatState(active=True, segment=segment, segment_index=index), commands


def disengage(repeat: RepeatState) -> Transition:
    """Return to Idle without touching playback."""
    if not repeat.active:
        return repeat, []
    logger.debug("Repeat disengaged from caption %d", repeat.segment_index)
    commands: List[Command] = [CancelPauseConfirm()] if repeat.pending_pause_confirm else []
    return IDLE, commands


def toggle(
    repeat: RepeatState,
    active_index: Optional[int],
    index: CaptionIndex,
) -> Transition:
    """Explicit repeat toggle.

    Looping goes to Idle. Idle engages the currently active caption; with
    no active caption it stays Idle.
    """
    if repeat.active:
        return disengage(repeat)
    if active_index is None or not 0 <= active_index < len(index):
        return repeat, []
    return engage(repeat, index[active_index], active_index)


def check_boundary(repeat: RepeatState, time: float, epsilon: float) -> List[Command]:
    """Return a re-seek command if `time` reached the loop end."""
    segment = repeat.segment
    if not repeat.active or segment is None:
        return []
    if time >= segment.start + segment.duration - epsilon:
        return [Seek(segment.start, exact=True)]
    return []


def on_paused(repeat: RepeatState) -> Transition:
    """The player reported PAUSED. While looping, wait for confirmation."""
    if not repeat.active:
        return repeat, []
    return replace(repeat, pending_pause_confirm=True), [StartPauseConfirm()]


def confirm_pause(repeat: RepeatState, player_state: PlayerState) -> Transition:
    """The confirmation delay elapsed; decide between user pause and glitch.

    RULES:
    - No-op unless a confirmation is pending
    - Still PAUSED → user intent: Idle, pin cleared
    - Any other state → transient: re-seek to segment start and play
    """
    if not (repeat.active and repeat.pending_pause_confirm):
        return repeat, []
    if player_state == PlayerState.PAUSED:
        logger.debug("Pause confirmed; leaving repeat on caption %d", repeat.segment_index)
        return IDLE, []
    segment = repeat.segment
    resumed = replace(repeat, pending_pause_confirm=False)
    if segment is None:
        return resumed, []
    return resumed, [Seek(segment.start, exact=True), Play()]
