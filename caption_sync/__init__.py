"""Caption Sync — playback-to-caption synchronization for bilingual video captions.

WHY: A bilingual caption player has to know, at every instant, which
caption is active, loop a single caption on demand, and keep the caption
list scrolled to it without fighting the user's own scrolling. These
rules interact through shared timing state, so they live in one engine.

HOW: Three layers — fetch (api: async transcript client), decide (core:
pure transition functions over a frozen EngineState), run (session: the
asyncio owner of the player, the timers and the command execution).

RULES:
- Core transitions are pure and return commands; only the session acts
- All timers are owned, cancellable asyncio tasks
- Failures degrade to "no active captions", never to a crash
"""

__version__ = "0.1.0"
