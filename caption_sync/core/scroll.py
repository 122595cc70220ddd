"""Auto-scroll gating with a user-scroll cooldown.

WHY: Auto-scrolling the caption list while the user is browsing it yanks
the view out from under them. Any user scroll suppresses auto-scroll until
a quiet period has passed.

HOW: ScrollSuppression records whether the user is scrolling and when the
cooldown ends. note_user_scroll() pushes the deadline forward; expire()
clears the flag once the deadline has passed. should_auto_scroll() is the
single gate every scroll request goes through.

RULES:
- Every user scroll restarts the full cooldown
- The auto-scroll feature flag and the suppression are independent
- While repeating, only the pinned caption may be scrolled to
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from caption_sync.core.repeat import RepeatState


@dataclass(frozen=True)
class ScrollSuppression:
    user_scrolling: bool = False
    cooldown_deadline: Optional[float] = None


def note_user_scroll(now: float, cooldown: float) -> ScrollSuppression:
    """A user-originated scroll event happened at `now`."""
    return ScrollSuppression(user_scrolling=True, cooldown_deadline=now + cooldown)


def expire(scroll: ScrollSuppression, now: float) -> ScrollSuppression:
    """Clear suppression if its deadline is at or before `now`."""
    if scroll.cooldown_deadline is not None and now >= scroll.cooldown_deadline:
        return ScrollSuppression()
    return scroll


def should_auto_scroll(
    target: Optional[int],
    auto_scroll: bool,
    scroll: ScrollSuppression,
    repeat: RepeatState,
) -> bool:
    if target is None or target < 0:
        return False
    if not auto_scroll or scroll.user_scrolling:
        return False
    return not repeat.active or target == repeat.segment_index
