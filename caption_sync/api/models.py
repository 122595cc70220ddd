"""Pydantic models for the transcript backend's response.

WHY: The backend returns loosely shaped JSON. Validating it at the edge
means the engine only ever sees well-formed segments, and a malformed
body becomes a typed fetch error instead of a crash mid-playback.

HOW: CaptionRecord validates start/duration and keeps every other field
(the per-language texts) as pydantic extras. TranscriptResponse wraps the
captions list.

RULES:
- start >= 0, duration > 0, both finite
- Language fields are not declared; any extra string field is a text
- A missing captions field is treated as an empty list
"""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from caption_sync.core.captions import CaptionIndex, CaptionSegment


class CaptionRecord(BaseModel):
    """One caption as sent by the backend."""

    model_config = ConfigDict(extra="allow")

    start: float = Field(ge=0, allow_inf_nan=False, description="Caption start time in seconds.")
    duration: float = Field(gt=0, allow_inf_nan=False, description="Caption duration in seconds.")

    def to_segment(self) -> CaptionSegment:
        extras: Dict[str, Any] = self.model_extra or {}
        texts = {key: value for key, value in extras.items() if isinstance(value, str)}
        return CaptionSegment(start=self.start, duration=self.duration, texts=texts)


class TranscriptResponse(BaseModel):
    """Body of POST /transcript."""

    captions: List[CaptionRecord] = Field(default_factory=list)

    def to_index(self) -> CaptionIndex:
        return CaptionIndex([record.to_segment() for record in self.captions])
