"""Caption segments, the per-video caption index, and time formatting.

WHY: Every other engine component asks the same question: which caption
contains this playback time? The index answers it once, with a single
tie-break rule, so the resolver, the repeat loop and the UI agree.

HOW: CaptionSegment is a frozen dataclass built from a raw backend record.
CaptionIndex wraps an immutable tuple of segments in received order and
scans it linearly for point-in-time lookups.

RULES:
- Times are float seconds; a segment covers [start, start + duration)
- Text keys are every string-valued field of a record except start/duration
- Language keys of an index come from its first segment
- lookup() returns the FIRST matching segment in stored order, even when
  segments overlap or are out of order
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Sequence, Tuple

_TIMING_FIELDS = ("start", "duration")


@dataclass(frozen=True)
class CaptionSegment:
    """One time-coded caption with per-language text.

    RULES:
    - start >= 0, duration > 0 (validated by from_dict and the API models)
    - texts maps a language key (e.g. "english") to its caption text
    """

    start: float
    duration: float
    texts: Dict[str, str] = field(default_factory=dict)

    @property
    def end(self) -> float:
        return self.start + self.duration

    def contains(self, time: float) -> bool:
        return self.start <= time < self.start + self.duration

    def text(self, key: str) -> str:
        """Return the text for a language key, or "" if absent."""
        return self.texts.get(key, "")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CaptionSegment:
        """Parse a CaptionSegment from a raw backend record.

        WHY: The backend sends flat records such as
        {"start": 1.2, "duration": 3.0, "english": "...", "vietnamese": "..."}
        where the language fields are not known in advance.

        HOW: start/duration become floats; every other string-valued field
        becomes an entry in texts.

        RULES:
        - Raises ValueError if start is negative or duration not positive
        - Raises KeyError if start or duration is missing
        - Non-string extra fields are ignored
        """
        start = float(data["start"])
        duration = float(data["duration"])
        if start < 0 or not math.isfinite(start):
            raise ValueError("Caption start must be >= 0, got {}".format(start))
        if duration <= 0 or not math.isfinite(duration):
            raise ValueError("Caption duration must be > 0, got {}".format(duration))
        texts = {
            key: value
            for key, value in data.items()
            if key not in _TIMING_FIELDS and isinstance(value, str)
        }
        return cls(start=start, duration=duration, texts=texts)


class CaptionIndex:
    """Immutable ordered sequence of caption segments for one video.

    WHY: A session swaps the whole index on each successful fetch, so the
    index itself never changes and can be shared freely.

    HOW: Stores segments in a tuple in the order received. lookup() is a
    linear scan; transcripts are small and human-authored.

    RULES:
    - Order is the received order; it is never re-sorted
    - lookup() is side-effect free
    """

    def __init__(self, segments: Sequence[CaptionSegment] = ()) -> None:
        self._segments: Tuple[CaptionSegment, ...] = tuple(segments)

    @classmethod
    def from_records(cls, records: Sequence[Dict[str, Any]]) -> CaptionIndex:
        return cls([CaptionSegment.from_dict(r) for r in records])

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self) -> Iterator[CaptionSegment]:
        return iter(self._segments)

    def __getitem__(self, index: int) -> CaptionSegment:
        return self._segments[index]

    def __bool__(self) -> bool:
        return bool(self._segments)

    def __repr__(self) -> str:
        return "CaptionIndex({} segments)".format(len(self._segments))

    @property
    def segments(self) -> Tuple[CaptionSegment, ...]:
        return self._segments

    @property
    def language_keys(self) -> Tuple[str, ...]:
        """Language keys of the first segment, in record order."""
        if not self._segments:
            return ()
        return tuple(self._segments[0].texts)

    @property
    def duration(self) -> float:
        """End time of the latest-ending segment (0.0 when empty)."""
        return max((s.end for s in self._segments), default=0.0)

    def lookup(self, time: float) -> Optional[int]:
        """Return the index of the first segment containing time, or None."""
        for i, segment in enumerate(self._segments):
            if segment.start <= time < segment.start + segment.duration:
                return i
        return None


def format_time(seconds: float) -> str:
    """Format seconds as MM:SS.d for display.

    Minutes are not capped at 59. The tenths digit is truncated, not
    rounded: format_time(65.34) == "01:05.3".
    """
    total_seconds = math.floor(seconds)
    minutes = total_seconds // 60
    secs = total_seconds % 60
    tenths = math.floor((seconds - total_seconds) * 10)
    return "{:02d}:{:02d}.{}".format(minutes, secs, tenths)
