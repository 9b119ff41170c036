"""Content window reads and writes on placed clips."""

from __future__ import annotations

from clip_arranger.arrangement.models import ContentWindow
from clip_arranger.host.adapter import ClipProperty, PrimitiveAdapter


def read_content_window(adapter: PrimitiveAdapter, clip_id: str) -> ContentWindow:
    if adapter.get_property(clip_id, ClipProperty.LOOPING):
        return ContentWindow(
            float(adapter.get_property(clip_id, ClipProperty.LOOP_START)),
            float(adapter.get_property(clip_id, ClipProperty.LOOP_END)),
        )
    return ContentWindow(
        float(adapter.get_property(clip_id, ClipProperty.START_MARKER)),
        float(adapter.get_property(clip_id, ClipProperty.END_MARKER)),
    )


def write_content_window(adapter: PrimitiveAdapter, clip_id: str, start: float, end: float) -> None:
    """Point loop region and markers at ``[start, end)``.

    The loop region is only writable while looping is on, so looping is
    switched on for the writes and the original value restored afterward.
    Writing ``end_marker`` while looping leaves the placement untouched.
    """
    was_looping = bool(adapter.get_property(clip_id, ClipProperty.LOOPING))
    if not was_looping:
        adapter.set_property(clip_id, ClipProperty.LOOPING, True)
    try:
        _write_ordered(adapter, clip_id, ClipProperty.LOOP_START, ClipProperty.LOOP_END, start, end)
        _write_ordered(adapter, clip_id, ClipProperty.START_MARKER, ClipProperty.END_MARKER, start, end)
    finally:
        if not was_looping:
            adapter.set_property(clip_id, ClipProperty.LOOPING, False)


def set_loop_start_marker(adapter: PrimitiveAdapter, clip_id: str, start_marker: float) -> None:
    """Move a looping clip's start marker, raising ``end_marker`` to the loop end first if needed."""
    end_marker = float(adapter.get_property(clip_id, ClipProperty.END_MARKER))
    if start_marker >= end_marker:
        loop_end = float(adapter.get_property(clip_id, ClipProperty.LOOP_END))
        adapter.set_property(clip_id, ClipProperty.END_MARKER, loop_end)
    adapter.set_property(clip_id, ClipProperty.START_MARKER, start_marker)


def shift_content_start(adapter: PrimitiveAdapter, clip_id: str, delta_beats: float, units_per_beat: float = 1.0) -> None:
    """Advance what a clip plays by ``delta_beats`` of timeline, keeping its placement."""
    if adapter.get_property(clip_id, ClipProperty.LOOPING):
        window = read_content_window(adapter, clip_id)
        start_marker = float(adapter.get_property(clip_id, ClipProperty.START_MARKER))
        set_loop_start_marker(adapter, clip_id, wrap_loop_position(window, start_marker + delta_beats * units_per_beat))
        return

    window = read_content_window(adapter, clip_id)
    delta = delta_beats * units_per_beat
    write_content_window(adapter, clip_id, window.start + delta, window.end + delta)


def wrap_loop_position(window: ContentWindow, position: float) -> float:
    """Map a content position onto what a looping clip plays there.

    Positions still in the pre-roll before the loop start are returned as is.
    """
    if position < window.start or window.length <= 0:
        return position
    return window.start + (position - window.start) % window.length


def units_per_beat(adapter: PrimitiveAdapter, clip_id: str) -> float:
    """Content units per timeline beat: 1 for beat-based content, seconds per beat for unwarped audio."""
    if not adapter.get_property(clip_id, ClipProperty.IS_AUDIO_CLIP):
        return 1.0
    if adapter.get_property(clip_id, ClipProperty.WARPING):
        return 1.0
    if adapter.get_property(clip_id, ClipProperty.FILE_PATH) is None:
        return 1.0
    return 60.0 / adapter.get_tempo_bpm()


def _write_ordered(
    adapter: PrimitiveAdapter,
    clip_id: str,
    low: ClipProperty,
    high: ClipProperty,
    start: float,
    end: float,
) -> None:
    current_high = float(adapter.get_property(clip_id, high))
    if start < current_high:
        adapter.set_property(clip_id, low, start)
        adapter.set_property(clip_id, high, end)
    else:
        adapter.set_property(clip_id, high, end)
        adapter.set_property(clip_id, low, start)
