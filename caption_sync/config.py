"""Configuration constants, engine timings, key bindings, and .env loading.

WHY: The engine is driven by a handful of timing constants (poll cadence,
seek-settle guard, pause confirmation, scroll cooldown, loop tolerance)
plus the transcript backend URL. Keeping them in one module makes them
easy to find and to override per deployment.

HOW: python-dotenv loads the .env file on import. Defaults are module-level
constants, each overridable via a CAPTION_SYNC_* environment variable.
EngineTimings bundles the timing values that a session needs.

RULES:
- All timing values are float seconds and must be positive
- load_timings() raises ValueError on a non-numeric or non-positive value
- The backend URL never has a trailing slash
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from typing import Dict

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Transcript backend
# ---------------------------------------------------------------------------

DEFAULT_BACKEND_URL = "http://localhost:8000"

BACKEND_URL = os.getenv("CAPTION_SYNC_BACKEND_URL", DEFAULT_BACKEND_URL).rstrip("/")
FETCH_TIMEOUT_S = float(os.getenv("CAPTION_SYNC_FETCH_TIMEOUT_S", "60"))

# ---------------------------------------------------------------------------
# Engine timings
# ---------------------------------------------------------------------------

POLL_INTERVAL_S = 0.1
SEEK_SETTLE_S = 0.3
PAUSE_CONFIRM_S = 0.3
SCROLL_COOLDOWN_S = 2.0
LOOP_EPSILON_S = 0.1


@dataclass(frozen=True)
class EngineTimings:
    """Timing values used by a caption session.

    RULES:
    - poll_interval_s: clock sampling period
    - seek_settle_s: samples are discarded this long after a programmatic seek
    - pause_confirm_s: delay before a pause while looping counts as user intent
    - scroll_cooldown_s: quiet period after the last user scroll
    - loop_epsilon_s: a loop re-seeks this long before the segment end
    """

    poll_interval_s: float = POLL_INTERVAL_S
    seek_settle_s: float = SEEK_SETTLE_S
    pause_confirm_s: float = PAUSE_CONFIRM_S
    scroll_cooldown_s: float = SCROLL_COOLDOWN_S
    loop_epsilon_s: float = LOOP_EPSILON_S


_TIMING_ENV = {
    "poll_interval_s": "CAPTION_SYNC_POLL_INTERVAL_S",
    "seek_settle_s": "CAPTION_SYNC_SEEK_SETTLE_S",
    "pause_confirm_s": "CAPTION_SYNC_PAUSE_CONFIRM_S",
    "scroll_cooldown_s": "CAPTION_SYNC_SCROLL_COOLDOWN_S",
    "loop_epsilon_s": "CAPTION_SYNC_LOOP_EPSILON_S",
}


def load_timings() -> EngineTimings:
    """Build EngineTimings from the environment.

    WHY: Slow players (or tests) need longer or shorter guards without
    code changes.

    HOW: Reads each CAPTION_SYNC_*_S variable, falling back to the
    dataclass default when unset.

    RULES:
    - Raises ValueError naming the variable when a value is not a number
      or is not positive
    """
    values = {}
    for field_name, env_name in _TIMING_ENV.items():
        raw = os.getenv(env_name, "").strip()
        if not raw:
            continue
        try:
            value = float(raw)
        except ValueError:
            raise ValueError(
                "{} must be a number of seconds, got {!r}".format(env_name, raw)
            ) from None
        if value <= 0:
            raise ValueError("{} must be positive, got {}".format(env_name, value))
        values[field_name] = value
    return EngineTimings(**values)


# ---------------------------------------------------------------------------
# Keyboard shortcuts
# ---------------------------------------------------------------------------


class KeyAction(str, enum.Enum):
    """Actions reachable from the keyboard."""

    TOGGLE_PLAY = "toggle_play"
    TOGGLE_REPEAT = "toggle_repeat"
    TOGGLE_AUTO_SCROLL = "toggle_auto_scroll"


DEFAULT_KEY_BINDINGS: Dict[str, KeyAction] = {
    "space": KeyAction.TOGGLE_PLAY,
    "r": KeyAction.TOGGLE_REPEAT,
    "a": KeyAction.TOGGLE_AUTO_SCROLL,
}
