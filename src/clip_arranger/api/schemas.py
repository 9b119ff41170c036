"""FastAPI request/response schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ClipSummary(BaseModel):
    clip_id: str
    start_time: float
    end_time: float
    looping: bool
    content_start: float
    content_end: float
    is_audio: bool


class TrackClipsResponse(BaseModel):
    track_id: str
    clips: list[ClipSummary]


class ResizeClipRequest(BaseModel):
    track_id: str = Field(min_length=1)
    clip_id: str = Field(min_length=1)
    length_beats: float = Field(gt=0, allow_inf_nan=False)


class ResizeClipResponse(BaseModel):
    clip_ids: list[str]
    requested_length: float
    achieved_length: float
    warnings: list[str]


class ResizeBatchRequest(BaseModel):
    items: list[ResizeClipRequest] = Field(min_length=1)
    deadline_sec: float | None = Field(default=None, gt=0)


class ResizeBatchItem(BaseModel):
    track_id: str
    clip_id: str
    status: Literal["ok", "failed", "skipped"]
    result: ResizeClipResponse | None = None
    error: str | None = None


class ResizeBatchResponse(BaseModel):
    items: list[ResizeBatchItem]
