"""Core synchronization engine: caption index, resolver, repeat loop, scroll gate.

WHY: The core holds every decision the player makes about captions, free
of timers, HTTP and UI, so each rule can be tested on plain values.

HOW: captions.py defines the segment and index types, resolver.py maps a
time to the active caption, repeat.py and scroll.py are the two small
state machines, and engine.py composes them into transition functions
that return commands for the session to execute.

RULES:
- Nothing in core sleeps or schedules timers
- State values are frozen dataclasses; transitions return new values
"""
