"""Shared test fixtures for the caption_sync test suite.

WHY: Most test modules need the same small transcripts and a controllable
stand-in for the video player. Centralizing them here keeps the scenarios
identical across the engine, session and CLI tests.

HOW: Plain record lists mirror the backend's JSON. FakePlayer implements
the Player protocol with a settable clock and state, and records every
command it receives.

RULES:
- TWO_CAPTIONS is the end-to-end scenario: "Hi" 0–3s, "Bye" 3–5s
- BILINGUAL_CAPTIONS uses the backend's english/vietnamese keys
- FakePlayer never advances time on its own; tests set `time` directly
"""

from typing import Any, Dict, List, Tuple

import pytest

from caption_sync.config import EngineTimings
from caption_sync.core.captions import CaptionIndex
from caption_sync.player import PlayerState


TWO_CAPTIONS: List[Dict[str, Any]] = [
    {"start": 0, "duration": 3, "en": "Hi"},
    {"start": 3, "duration": 2, "en": "Bye"},
]

BILINGUAL_CAPTIONS: List[Dict[str, Any]] = [
    {"start": 0.0,  "duration": 2.5, "english": "Hello there.",      "vietnamese": "Xin chào."},
    {"start": 2.5,  "duration": 3.0, "english": "How are you?",      "vietnamese": "Bạn khỏe không?"},
    {"start": 5.5,  "duration": 4.5, "english": "I am fine, thanks.", "vietnamese": "Tôi khỏe, cảm ơn."},
    {"start": 10.0, "duration": 5.0, "english": "See you later.",    "vietnamese": "Hẹn gặp lại."},
]

FAST_TIMINGS = EngineTimings(
    poll_interval_s=0.01,
    seek_settle_s=0.05,
    pause_confirm_s=0.05,
    scroll_cooldown_s=0.1,
    loop_epsilon_s=0.1,
)


class FakePlayer:
    """Player double with a settable clock that records commands."""

    def __init__(self, time: float = 0.0, state: PlayerState = PlayerState.PLAYING) -> None:
        self.time = time
        self.state = state
        self.seeks: List[Tuple[float, bool]] = []
        self.play_calls = 0
        self.pause_calls = 0
        self.time_reads = 0

    def get_current_time(self) -> float:
        self.time_reads += 1
        return self.time

    def seek_to(self, seconds: float, exact: bool) -> None:
        self.seeks.append((seconds, exact))
        self.time = seconds

    def play(self) -> None:
        self.play_calls += 1
        self.state = PlayerState.PLAYING

    def pause(self) -> None:
        self.pause_calls += 1
        self.state = PlayerState.PAUSED

    def get_state(self) -> PlayerState:
        return self.state


@pytest.fixture
def two_captions() -> CaptionIndex:
    return CaptionIndex.from_records(TWO_CAPTIONS)


@pytest.fixture
def bilingual_captions() -> CaptionIndex:
    return CaptionIndex.from_records(BILINGUAL_CAPTIONS)


@pytest.fixture
def fake_player() -> FakePlayer:
    return FakePlayer()


@pytest.fixture
def fast_timings() -> EngineTimings:
    return FAST_TIMINGS


@pytest.fixture
def two_caption_records() -> List[Dict[str, Any]]:
    return [dict(r) for r in TWO_CAPTIONS]


@pytest.fixture
def bilingual_records() -> List[Dict[str, Any]]:
    return [dict(r) for r in BILINGUAL_CAPTIONS]
