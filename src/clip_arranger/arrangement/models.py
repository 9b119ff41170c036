"""Arrangement domain models."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal
from uuid import uuid4

EPSILON = 1e-3

BatchStatus = Literal["ok", "failed", "skipped"]


class ArrangementError(RuntimeError):
    """Raised when a resize cannot be carried out."""


class InvariantViolation(ArrangementError):
    """Raised when internal arithmetic or a post-condition does not hold."""


@dataclass(frozen=True, slots=True)
class ContentWindow:
    start: float
    end: float

    @property
    def length(self) -> float:
        return self.end - self.start


@dataclass(frozen=True, slots=True)
class LoopingClip:
    clip_id: str
    track_id: str
    start_time: float
    end_time: float
    loop_start: float
    loop_end: float
    start_marker: float
    is_audio: bool

    @property
    def length(self) -> float:
        return self.end_time - self.start_time

    @property
    def window(self) -> ContentWindow:
        return ContentWindow(self.loop_start, self.loop_end)


@dataclass(frozen=True, slots=True)
class OneShotNoteClip:
    clip_id: str
    track_id: str
    start_time: float
    end_time: float
    start_marker: float
    end_marker: float

    @property
    def length(self) -> float:
        return self.end_time - self.start_time

    @property
    def window(self) -> ContentWindow:
        return ContentWindow(self.start_marker, self.end_marker)


@dataclass(frozen=True, slots=True)
class OneShotAudioWarpedClip:
    clip_id: str
    track_id: str
    start_time: float
    end_time: float
    start_marker: float
    end_marker: float
    file_path: str | None

    @property
    def length(self) -> float:
        return self.end_time - self.start_time

    @property
    def window(self) -> ContentWindow:
        return ContentWindow(self.start_marker, self.end_marker)


@dataclass(frozen=True, slots=True)
class OneShotAudioUnwarpedClip:
    """One-shot audio playing at native rate; markers are in seconds."""

    clip_id: str
    track_id: str
    start_time: float
    end_time: float
    start_marker: float
    end_marker: float
    file_path: str | None

    @property
    def length(self) -> float:
        return self.end_time - self.start_time

    @property
    def window(self) -> ContentWindow:
        return ContentWindow(self.start_marker, self.end_marker)


ClipVariant = LoopingClip | OneShotNoteClip | OneShotAudioWarpedClip | OneShotAudioUnwarpedClip


@dataclass(frozen=True, slots=True)
class Tile:
    clip_id: str
    start_time: float
    end_time: float
    content_offset: float
    content_start: float

    @property
    def length(self) -> float:
        return self.end_time - self.start_time


@dataclass(frozen=True, slots=True)
class PlacedClip:
    clip_id: str
    start_time: float
    end_time: float
    looping: bool
    content_start: float
    content_end: float
    is_audio: bool


@dataclass(slots=True)
class ResizeRequest:
    track_id: str
    clip_id: str
    target_length: float

    def validate(self) -> None:
        if not self.track_id:
            raise ValueError("track_id must not be empty")
        if not self.clip_id:
            raise ValueError("clip_id must not be empty")
        if not math.isfinite(self.target_length):
            raise ValueError(f"target_length must be a finite number, got {self.target_length}")
        if self.target_length <= 0:
            raise ValueError("target_length must be positive")


@dataclass(slots=True)
class ResizeOutcome:
    clip_ids: list[str]
    requested_length: float
    achieved_length: float
    warnings: list[str] = field(default_factory=list)


@dataclass(slots=True)
class BatchItemResult:
    request: ResizeRequest
    status: BatchStatus
    outcome: ResizeOutcome | None = None
    error: str | None = None


@dataclass(slots=True)
class ResizeCommand:
    command_id: str
    track_id: str
    clip_id: str
    requested_length: float
    achieved_length: float
    clip_ids: list[str]
    created_at: datetime

    @staticmethod
    def new(request: ResizeRequest, outcome: ResizeOutcome) -> ResizeCommand:
        return ResizeCommand(
            command_id=str(uuid4()),
            track_id=request.track_id,
            clip_id=request.clip_id,
            requested_length=outcome.requested_length,
            achieved_length=outcome.achieved_length,
            clip_ids=list(outcome.clip_ids),
            created_at=datetime.now(UTC),
        )
