"""Active-segment resolution for a single clock sample.

WHY: The raw lookup can flicker at segment boundaries, and while a segment
is looping the displayed caption must stay on the pinned segment even when
a late sample maps elsewhere.

HOW: resolve_active_index() runs the index lookup and then applies the
repeat pin. It returns the new index, or None meaning "keep the previous
one".

RULES:
- Pure: same inputs always give the same answer, no side effects
- A miss (no segment contains the time) never clears the active index
- While repeat is active only the pinned index can be adopted
"""

from __future__ import annotations

from typing import Optional

from caption_sync.core.captions import CaptionIndex
from caption_sync.core.repeat import RepeatState


def resolve_active_index(
    time: float,
    index: CaptionIndex,
    previous_active: Optional[int],
    repeat: RepeatState,
) -> Optional[int]:
    """Return the newly active caption index, or None for no change."""
    candidate = index.lookup(time)
    if candidate is None or candidate == previous_active:
        return None
    if not repeat.active or candidate == repeat.segment_index:
        return candidate
    return None
