"""Tests for active-segment resolution.

WHY: The resolver decides what the user sees as "the current caption" on
every clock sample. While a caption is looping it must never drift to a
neighbour, and repeated identical samples must never cause churn.

HOW: Calls resolve_active_index() directly with hand-built RepeatStates.

RULES:
- None from the resolver means "keep the previous index"
"""

from __future__ import annotations

from caption_sync.core.repeat import IDLE, RepeatState
from caption_sync.core.resolver import resolve_active_index


def _pinned(index, captions) -> RepeatState:
    return RepeatState(active=True, segment=captions[index], segment_index=index)


class TestResolveActiveIndex:

    def test_adopts_new_candidate_when_idle(self, two_captions):
        assert resolve_active_index(1.0, two_captions, None, IDLE) == 0
        assert resolve_active_index(3.5, two_captions, 0, IDLE) == 1

    def test_same_candidate_is_no_change(self, two_captions):
        assert resolve_active_index(1.0, two_captions, 0, IDLE) is None

    def test_miss_keeps_previous(self, two_captions):
        assert resolve_active_index(7.0, two_captions, 1, IDLE) is None

    def test_pinned_candidate_adopted(self, two_captions):
        repeat = _pinned(0, two_captions)
        assert resolve_active_index(1.0, two_captions, 1, repeat) == 0

    def test_off_pin_candidate_suppressed(self, two_captions):
        repeat = _pinned(0, two_captions)
        assert resolve_active_index(3.05, two_captions, 0, repeat) is None

    def test_off_pin_suppressed_even_from_no_active(self, two_captions):
        repeat = _pinned(0, two_captions)
        assert resolve_active_index(4.0, two_captions, None, repeat) is None

    def test_idempotent(self, two_captions):
        args = (3.5, two_captions, 0, IDLE)
        first = resolve_active_index(*args)
        for _ in range(5):
            assert resolve_active_index(*args) == first

    def test_pin_holds_under_fluctuating_samples(self, two_captions):
        repeat = _pinned(0, two_captions)
        active = 0
        for t in (2.9, 3.01, 0.1, 4.99, 3.0, 2.999, 6.0):
            new = resolve_active_index(t, two_captions, active, repeat)
            if new is not None:
                active = new
            assert active == 0
