"""Primitive operations the arrangement engine needs from a host."""

from __future__ import annotations

from enum import Enum
from typing import Any, Protocol


class ClipProperty(str, Enum):
    START_TIME = "start_time"
    END_TIME = "end_time"
    LOOP_START = "loop_start"
    LOOP_END = "loop_end"
    START_MARKER = "start_marker"
    END_MARKER = "end_marker"
    LOOPING = "looping"
    IS_AUDIO_CLIP = "is_audio_clip"
    WARPING = "warping"
    FILE_PATH = "file_path"


WRITABLE_PROPERTIES: frozenset[ClipProperty] = frozenset(
    {
        ClipProperty.LOOP_START,
        ClipProperty.LOOP_END,
        ClipProperty.START_MARKER,
        ClipProperty.END_MARKER,
        ClipProperty.LOOPING,
    }
)


class HostError(RuntimeError):
    """Raised when the host rejects a primitive call."""


class HostCorruptionError(HostError):
    """Raised when a duplicate lands on an occupied range and the host state is no longer trustworthy."""


class PrimitiveAdapter(Protocol):
    """Coarse clip primitives exposed by the host engine.

    There is no resize primitive: every change of a placed clip's duration is
    synthesized from these calls. Positions and lengths are in beats.
    """

    def get_track_ids(self) -> list[str]: ...

    def get_clip_ids(self, track_id: str) -> list[str]: ...

    def get_beats_per_bar(self) -> float: ...

    def get_tempo_bpm(self) -> float: ...

    def create_clip(self, track_id: str, position: float, length: float, file_path: str | None = None) -> str: ...

    def create_empty_filler(self, track_id: str, position: float, length: float) -> str: ...

    def duplicate_clip_to_position(self, track_id: str, clip_id: str, position: float) -> str: ...

    def delete_clip(self, track_id: str, clip_id: str) -> None: ...

    def get_property(self, clip_id: str, name: ClipProperty) -> Any: ...

    def set_property(self, clip_id: str, name: ClipProperty, value: Any) -> None: ...

    def get_overlapping_clip_ids(self, track_id: str, range_start: float, range_end: float) -> list[str]: ...

    def get_content_extent(self, clip_id: str) -> float: ...
