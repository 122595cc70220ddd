"""Command-line interface for the caption sync engine.

WHY: The engine normally sits behind a video player UI. The CLI makes it
usable (and observable) from a terminal: list a video's bilingual captions,
or play them back against a simulated player to watch the active caption
and the repeat loop in action.

HOW: Uses argparse for the flags and asyncio.run() for the async pipeline.
Captions are fetched through TranscriptClient into a CaptionSession. With
--follow, a SimulatedPlayer is attached to the session and every change of
active caption is printed as it happens.

RULES:
- Positional argument: the video URL passed to the transcript backend
- Caption lines go to stdout; status and errors go to stderr
- --languages: comma-separated text keys to print (default: all)
- --repeat N clicks caption N before following, so it loops
- Exit code 1 on input, configuration or fetch errors
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional, Sequence

from caption_sync.api.client import TranscriptClient
from caption_sync.config import BACKEND_URL, load_timings
from caption_sync.core.captions import CaptionIndex, CaptionSegment, format_time
from caption_sync.player import SimulatedPlayer
from caption_sync.session import CaptionSession


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


def format_caption_line(segment: CaptionSegment, keys: Sequence[str]) -> str:
    """Render one caption as "[MM:SS.d] text | text"."""
    texts = [segment.text(key) for key in keys]
    return "[{}] {}".format(format_time(segment.start), " | ".join(t for t in texts if t))


def _select_keys(captions: CaptionIndex, languages: Optional[str]) -> List[str]:
    available = list(captions.language_keys)
    if not languages:
        return available
    wanted = [key.strip() for key in languages.split(",") if key.strip()]
    unknown = [key for key in wanted if key not in available]
    if unknown:
        raise ValueError(
            "Unknown language key(s): {}. Available: {}".format(
                ", ".join(unknown), ", ".join(available)
            )
        )
    return wanted


async def _follow(
    session: CaptionSession,
    repeat: Optional[int],
    duration: Optional[float],
) -> None:
    """Play the captions against a SimulatedPlayer until `duration` elapses."""
    captions = session.captions
    if repeat is not None and not 0 <= repeat < len(captions):
        raise ValueError(
            "--repeat must be between 0 and {}".format(len(captions) - 1)
        )

    player = SimulatedPlayer(duration=captions.duration)
    player.add_listener(session.on_player_state_change)
    session.attach_player(player)

    if repeat is not None:
        _status("Repeating caption {}".format(repeat))
        session.click_caption(repeat)
    else:
        player.play()

    run_for = duration if duration is not None else captions.duration + 0.5
    try:
        await asyncio.sleep(run_for)
    finally:
        player.pause()
        session.close()
    _status("Stopped at {}".format(format_time(player.get_current_time())))


async def _run(args: argparse.Namespace) -> int:
    try:
        timings = load_timings()
    except ValueError as e:
        print("Error: {}".format(e), file=sys.stderr)
        return 1

    def on_active_change(index: Optional[int]) -> None:
        if args.follow and index is not None:
            print(format_caption_line(session.captions[index], keys), flush=True)

    keys: List[str] = []
    session = CaptionSession(timings=timings, on_active_change=on_active_change)

    _status("Fetching captions from {}...".format(args.backend_url))
    async with TranscriptClient(base_url=args.backend_url) as client:
        loaded = await session.load_transcript(client, args.video_url)
    if not loaded:
        print("Error: {}".format(session.error), file=sys.stderr)
        return 1

    captions = session.captions
    try:
        keys = _select_keys(captions, args.languages)
    except ValueError as e:
        print("Error: {}".format(e), file=sys.stderr)
        return 1
    _status("  {} captions, languages: {}".format(len(captions), ", ".join(captions.language_keys)))

    if not args.follow:
        for segment in captions:
            print(format_caption_line(segment, keys))
        return 0

    try:
        await _follow(session, args.repeat, args.duration)
    except ValueError as e:
        print("Error: {}".format(e), file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="caption_sync",
        description="Fetch bilingual captions for a video and follow them "
                    "against a simulated playback clock.",
    )

    parser.add_argument(
        "video_url",
        help="Video URL (or identifier) understood by the transcript backend.",
    )

    parser.add_argument(
        "--backend-url",
        default=BACKEND_URL,
        help="Transcript backend base URL (default: %(default)s).",
    )

    parser.add_argument(
        "--languages",
        default=None,
        help="Comma-separated caption text keys to print (default: all).",
    )

    parser.add_argument(
        "--follow",
        action="store_true",
        help="Play the captions against a simulated player and print each active caption.",
    )

    parser.add_argument(
        "--repeat",
        type=int,
        default=None,
        metavar="N",
        help="With --follow: loop caption N (0-based) instead of playing through.",
    )

    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="With --follow: seconds to run (default: until the last caption ends).",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log engine events to stderr.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
            datefmt="%H:%M:%S",
        )
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
