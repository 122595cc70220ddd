"""Tests for the transcript backend client.

WHY: Fetch failures must reach the user as the right kind of message, and
a malformed or empty body must never turn into a half-valid caption list.

HOW: The client is pointed at an httpx.MockTransport whose handler plays
the backend. Each test runs its coroutine with asyncio.run().

RULES:
- No real network access
- The handler records each request so the wire format can be checked
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest
from pydantic import ValidationError

from caption_sync.api.client import (
    EmptyTranscriptError,
    FetchErrorKind,
    InvalidVideoError,
    TranscriptClient,
    TranscriptFetchError,
    classify_status,
)
from caption_sync.api.models import CaptionRecord


def _fetch(handler, video_url="https://www.youtube.com/watch?v=dQw4w9WgXcQ"):
    async def run():
        transport = httpx.MockTransport(handler)
        async with TranscriptClient(base_url="http://backend.test/", transport=transport) as client:
            return await client.fetch_captions(video_url)

    return asyncio.run(run())


class TestFetchCaptions:

    def test_posts_url_and_parses_captions(self, bilingual_records):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"captions": bilingual_records})

        captions = _fetch(handler)

        assert len(captions) == 4
        assert captions.language_keys == ("english", "vietnamese")
        assert captions[1].text("vietnamese") == "Bạn khỏe không?"
        assert seen[0].method == "POST"
        assert str(seen[0].url) == "http://backend.test/transcript"
        assert json.loads(seen[0].content) == {
            "url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
        }

    def test_preserves_received_order(self):
        records = [
            {"start": 5, "duration": 1, "en": "second"},
            {"start": 0, "duration": 1, "en": "first"},
        ]
        captions = _fetch(lambda request: httpx.Response(200, json={"captions": records}))
        assert [c.text("en") for c in captions] == ["second", "first"]

    def test_empty_list_raises_empty_error(self):
        with pytest.raises(EmptyTranscriptError) as exc_info:
            _fetch(lambda request: httpx.Response(200, json={"captions": []}))
        assert exc_info.value.kind == FetchErrorKind.EMPTY

    def test_missing_captions_field_is_empty(self):
        with pytest.raises(EmptyTranscriptError):
            _fetch(lambda request: httpx.Response(200, json={}))

    def test_invalid_record_is_invalid_response(self):
        bad = {"captions": [{"start": 0, "duration": 0, "en": "zero length"}]}
        with pytest.raises(TranscriptFetchError) as exc_info:
            _fetch(lambda request: httpx.Response(200, json=bad))
        assert exc_info.value.kind == FetchErrorKind.INVALID_RESPONSE

    def test_non_finite_duration_is_invalid_response(self):
        body = b'{"captions": [{"start": 0, "duration": Infinity, "en": "forever"}]}'
        with pytest.raises(TranscriptFetchError) as exc_info:
            _fetch(lambda request: httpx.Response(200, content=body))
        assert exc_info.value.kind == FetchErrorKind.INVALID_RESPONSE

    def test_non_json_body_is_invalid_response(self):
        with pytest.raises(TranscriptFetchError) as exc_info:
            _fetch(lambda request: httpx.Response(200, text="<html>oops</html>"))
        assert exc_info.value.kind == FetchErrorKind.INVALID_RESPONSE

    @pytest.mark.parametrize(
        "status, kind",
        [
            (404, FetchErrorKind.NOT_FOUND),
            (403, FetchErrorKind.FORBIDDEN),
            (401, FetchErrorKind.FORBIDDEN),
            (500, FetchErrorKind.SERVER_ERROR),
            (502, FetchErrorKind.SERVER_ERROR),
            (400, FetchErrorKind.SERVER_ERROR),
        ],
    )
    def test_http_errors_classified(self, status, kind):
        with pytest.raises(TranscriptFetchError) as exc_info:
            _fetch(lambda request: httpx.Response(status, json={"detail": "nope"}))
        assert exc_info.value.kind == kind
        assert exc_info.value.status_code == status
        assert "Status: {}".format(status) in str(exc_info.value)

    def test_network_failure_is_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TranscriptFetchError) as exc_info:
            _fetch(handler)
        assert exc_info.value.kind == FetchErrorKind.NETWORK_ERROR
        assert exc_info.value.status_code is None

    def test_blank_url_raises_before_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"captions": []})

        with pytest.raises(InvalidVideoError):
            _fetch(handler, video_url="   ")
        assert calls == []


class TestClientLifecycle:

    def test_requires_context_manager(self):
        client = TranscriptClient(base_url="http://backend.test")
        with pytest.raises(RuntimeError):
            asyncio.run(client.fetch_captions("vid"))


class TestClassifyStatus:

    def test_not_found(self):
        assert classify_status(404) == FetchErrorKind.NOT_FOUND

    def test_forbidden(self):
        assert classify_status(403) == FetchErrorKind.FORBIDDEN

    def test_other(self):
        assert classify_status(503) == FetchErrorKind.SERVER_ERROR


class TestCaptionRecord:

    @pytest.mark.parametrize("field", ["start", "duration"])
    @pytest.mark.parametrize("value", [float("inf"), float("nan")])
    def test_non_finite_times_rejected(self, field, value):
        record = {"start": 1.0, "duration": 2.0, "en": "x"}
        record[field] = value
        with pytest.raises(ValidationError):
            CaptionRecord.model_validate(record)

    def test_extra_strings_become_texts(self):
        segment = CaptionRecord.model_validate(
            {"start": 1.0, "duration": 2.0, "en": "Hi", "speaker": 3}
        ).to_segment()
        assert segment.texts == {"en": "Hi"}
