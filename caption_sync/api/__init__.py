"""Transcript backend client package.

WHY: The player needs captions for a video from a separate HTTP backend.
This package encapsulates that communication behind one async client.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. Response bodies are
validated with the pydantic models in models.py.

RULES:
- All HTTP calls go through TranscriptClient (no direct httpx usage elsewhere)
- Fetch failures surface as TranscriptFetchError with a FetchErrorKind
"""

from caption_sync.api.client import (
    EmptyTranscriptError,
    FetchErrorKind,
    InvalidVideoError,
    TranscriptClient,
    TranscriptFetchError,
)

__all__ = [
    "EmptyTranscriptError",
    "FetchErrorKind",
    "InvalidVideoError",
    "TranscriptClient",
    "TranscriptFetchError",
]
