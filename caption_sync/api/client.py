"""Async HTTP client for the transcript backend.

WHY: Captions come from a separate backend that resolves a video URL to
a list of bilingual caption records. The session must tell "not found"
from "forbidden" from "backend down" so the user gets a useful message,
and it must never see a half-valid caption list.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. TranscriptClient is an
async context manager — enter it to open the connection pool, exit to
close it. fetch_captions() POSTs {"url": ...} to /transcript, validates
the body with the pydantic models, and returns a CaptionIndex.

RULES:
- Always use the async context manager (async with TranscriptClient() as client:)
- A blank video URL raises InvalidVideoError before any request is made
- Non-2xx responses raise TranscriptFetchError classified by status code
- Transport failures raise TranscriptFetchError with kind NETWORK_ERROR
- A valid but empty caption list raises EmptyTranscriptError
- Nothing is retried here; a failed fetch needs a new user attempt
"""

from __future__ import annotations

import enum
import logging

import httpx
from pydantic import ValidationError

from caption_sync.api.models import TranscriptResponse
from caption_sync.config import BACKEND_URL, FETCH_TIMEOUT_S
from caption_sync.core.captions import CaptionIndex

logger = logging.getLogger(__name__)


class FetchErrorKind(str, enum.Enum):
    """Classification of a failed transcript fetch."""

    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"
    INVALID_RESPONSE = "invalid_response"
    EMPTY = "empty"


class InvalidVideoError(ValueError):
    """Raised when no usable video URL or identifier was given.

    WHY: This is an input error, reported to the user without touching
    any engine state.

    RULES:
    - Raised before any HTTP request is made
    """


class TranscriptFetchError(Exception):
    """Raised when the backend cannot supply captions for a video.

    WHY: Callers need one exception type for every fetch failure, with a
    classification to pick the user-facing message.

    HOW: Carries the FetchErrorKind and, for HTTP failures, the status code.

    RULES:
    - status_code is None for network, validation and empty-result errors
    - str(exc) is a human-readable message suitable for the UI
    """

    def __init__(self, kind: FetchErrorKind, message: str, status_code: int | None = None) -> None:
        self.kind = kind
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class EmptyTranscriptError(TranscriptFetchError):
    """Raised when the backend answers successfully but with no captions."""

    def __init__(self) -> None:
        super().__init__(FetchErrorKind.EMPTY, "No captions were found for this video")


def classify_status(status_code: int) -> FetchErrorKind:
    """Map a non-2xx HTTP status to a FetchErrorKind.

    RULES:
    - 404 → NOT_FOUND
    - 401, 403 → FORBIDDEN
    - anything else → SERVER_ERROR
    """
    if status_code == 404:
        return FetchErrorKind.NOT_FOUND
    if status_code in (401, 403):
        return FetchErrorKind.FORBIDDEN
    return FetchErrorKind.SERVER_ERROR


def validate_video_url(video_url: str | None) -> str:
    """Return the stripped URL, or raise InvalidVideoError if blank."""
    cleaned = (video_url or "").strip()
    if not cleaned:
        raise InvalidVideoError("Please enter a valid video URL")
    return cleaned


class TranscriptClient:
    """Async client for the transcript backend.

    RULES:
    - Use as: async with TranscriptClient() as client: ...
    - base_url defaults to BACKEND_URL from config
    - transport is for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or BACKEND_URL).rstrip("/")
        self._timeout = timeout or FETCH_TIMEOUT_S
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> TranscriptClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout, connect=10.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "TranscriptClient must be used as an async context manager: "
                "async with TranscriptClient() as client: ..."
            )
        return self._client

    async def fetch_captions(self, video_url: str) -> CaptionIndex:
        """Fetch and validate the captions for a video.

        WHY: This is the only way captions enter the engine.

        HOW: POST /transcript with {"url": video_url}. The body is parsed
        by TranscriptResponse and converted to a CaptionIndex.

        RULES:
        - Raises InvalidVideoError for a blank URL
        - Raises TranscriptFetchError on HTTP, network or validation failure
        - Raises EmptyTranscriptError if the caption list is empty

        Args:
            video_url: The video URL (or identifier) the backend understands.

        Returns:
            CaptionIndex with the captions in the order received.
        """
        video_url = validate_video_url(video_url)
        client = self._ensure_client()

        try:
            resp = await client.post("/transcript", json={"url": video_url})
        except httpx.HTTPError as exc:
            logger.warning("Transcript request for %s failed: %s", video_url, exc)
            raise TranscriptFetchError(
                FetchErrorKind.NETWORK_ERROR,
                "Error loading captions: {}".format(exc),
            ) from exc

        if not resp.is_success:
            kind = classify_status(resp.status_code)
            logger.warning(
                "Transcript backend returned %d (%s) for %s",
                resp.status_code, kind.value, video_url,
            )
            raise TranscriptFetchError(
                kind,
                "Error loading captions: HTTP error! Status: {}".format(resp.status_code),
                status_code=resp.status_code,
            )

        try:
            transcript = TranscriptResponse.model_validate_json(resp.content)
        except ValidationError as exc:
            logger.warning("Invalid transcript body for %s: %s", video_url, exc)
            raise TranscriptFetchError(
                FetchErrorKind.INVALID_RESPONSE,
                "Error loading captions: the server sent an invalid response",
            ) from exc

        captions = transcript.to_index()
        if not captions:
            raise EmptyTranscriptError()

        logger.info(
            "Loaded %d captions (%s) for %s",
            len(captions), ", ".join(captions.language_keys), video_url,
        )
        return captions
