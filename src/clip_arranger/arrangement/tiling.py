"""Fill a timeline range with back-to-back copies of one clip."""

from __future__ import annotations

import logging
from dataclasses import replace

from clip_arranger.arrangement.clearance import ClearanceStrategy
from clip_arranger.arrangement.holding import create_partial_tile
from clip_arranger.arrangement.markers import (
    read_content_window,
    set_loop_start_marker,
    units_per_beat,
    write_content_window,
)
from clip_arranger.arrangement.models import EPSILON, ArrangementError, ContentWindow, InvariantViolation, Tile
from clip_arranger.arrangement.truncate import force_truncate_via_overlay
from clip_arranger.host.adapter import ClipProperty, PrimitiveAdapter

log = logging.getLogger(__name__)


def tile_clip_to_range(
    adapter: PrimitiveAdapter,
    track_id: str,
    source_id: str,
    start_position: float,
    total_length: float,
    holding_start: float,
    clearance: ClearanceStrategy,
    *,
    start_offset: float = 0.0,
    tile_length: float | None = None,
    adjust_pre_roll: bool = True,
) -> list[Tile]:
    """Cover ``[start_position, start_position + total_length)`` with tiles of ``source_id``.

    Tile ``i`` plays the source content from ``start_offset + i * tile_length``
    beats in, wrapped to the content window, so consecutive tiles continue
    where the previous one stopped. ``tile_length`` defaults to the content
    length. A trailing remainder becomes a shortened tile.
    """
    if total_length <= EPSILON:
        return []

    looping = bool(adapter.get_property(source_id, ClipProperty.LOOPING))
    window = read_content_window(adapter, source_id)
    if window.length <= EPSILON:
        raise ArrangementError(f"clip '{source_id}' has no content to tile")
    scale = units_per_beat(adapter, source_id)
    content_length = window.length / scale

    source_start = float(adapter.get_property(source_id, ClipProperty.START_TIME))
    source_length = float(adapter.get_property(source_id, ClipProperty.END_TIME)) - source_start
    step = tile_length if tile_length is not None else content_length
    if step <= EPSILON:
        raise ValueError(f"tile length must be positive, got {step}")
    if step > source_length + EPSILON:
        raise ValueError(f"tile length {step} exceeds the placed length {source_length} of clip '{source_id}'")

    if looping:
        # Duplicates copy the end marker; keep it on the loop end so later start-marker moves stay valid.
        loop_end = float(adapter.get_property(source_id, ClipProperty.LOOP_END))
        if abs(float(adapter.get_property(source_id, ClipProperty.END_MARKER)) - loop_end) > EPSILON:
            adapter.set_property(source_id, ClipProperty.END_MARKER, loop_end)

    direct = abs(step - source_length) <= EPSILON
    full_tiles = int(total_length // step)
    remainder = total_length - full_tiles * step
    log.debug(
        "tiling %s over [%.4f, %.4f): %d full tiles of %.4f, remainder %.4f",
        source_id,
        start_position,
        start_position + total_length,
        full_tiles,
        step,
        remainder,
    )

    tiles: list[Tile] = []
    for index in range(full_tiles):
        position = start_position + index * step
        if direct:
            clearance.clear(adapter, track_id, position, position + source_length)
            clip_id = adapter.duplicate_clip_to_position(track_id, source_id, position)
        else:
            clip_id = create_partial_tile(adapter, track_id, source_id, position, step, holding_start, clearance)
        tiles.append(
            _point_tile(adapter, track_id, clip_id, window, scale, start_offset + index * step, step, looping, adjust_pre_roll)
        )

    if remainder > EPSILON:
        position = start_position + full_tiles * step
        clip_id = create_partial_tile(adapter, track_id, source_id, position, remainder, holding_start, clearance)
        tiles.append(
            _point_tile(
                adapter, track_id, clip_id, window, scale, start_offset + full_tiles * step, remainder, looping, adjust_pre_roll
            )
        )

    return _verify_coverage(adapter, tiles, start_position, total_length)


def strip_pre_roll(adapter: PrimitiveAdapter, track_id: str, clip_id: str) -> bool:
    """Drop content before the loop start so playback begins on the loop.

    Returns True when the clip was changed. The placement is shortened by
    the removed amount.
    """
    start_marker = float(adapter.get_property(clip_id, ClipProperty.START_MARKER))
    loop_start = float(adapter.get_property(clip_id, ClipProperty.LOOP_START))
    if loop_start - start_marker <= EPSILON:
        return False

    pre_roll = (loop_start - start_marker) / units_per_beat(adapter, clip_id)
    end_time = float(adapter.get_property(clip_id, ClipProperty.END_TIME))
    adapter.set_property(clip_id, ClipProperty.START_MARKER, loop_start)
    force_truncate_via_overlay(adapter, track_id, clip_id, end_time - pre_roll)
    return True


def content_start_for_offset(window: ContentWindow, offset_beats: float, scale: float = 1.0) -> float:
    content_length = window.length / scale
    marker = window.start + (offset_beats % content_length) * scale
    if marker >= window.end - EPSILON * scale:
        return window.start
    return marker


def _point_tile(
    adapter: PrimitiveAdapter,
    track_id: str,
    clip_id: str,
    window: ContentWindow,
    scale: float,
    offset_beats: float,
    length: float,
    looping: bool,
    adjust_pre_roll: bool,
) -> Tile:
    content_start = content_start_for_offset(window, offset_beats, scale)
    if looping:
        set_loop_start_marker(adapter, clip_id, content_start)
        if adjust_pre_roll:
            strip_pre_roll(adapter, track_id, clip_id)
    else:
        write_content_window(adapter, clip_id, content_start, content_start + length * scale)

    return Tile(
        clip_id=clip_id,
        start_time=float(adapter.get_property(clip_id, ClipProperty.START_TIME)),
        end_time=float(adapter.get_property(clip_id, ClipProperty.END_TIME)),
        content_offset=(content_start - window.start) / scale,
        content_start=content_start,
    )


def _verify_coverage(adapter: PrimitiveAdapter, tiles: list[Tile], start_position: float, total_length: float) -> list[Tile]:
    current = [
        replace(
            tile,
            start_time=float(adapter.get_property(tile.clip_id, ClipProperty.START_TIME)),
            end_time=float(adapter.get_property(tile.clip_id, ClipProperty.END_TIME)),
        )
        for tile in tiles
    ]
    cursor = start_position
    for tile in current:
        if abs(tile.start_time - cursor) > EPSILON:
            raise InvariantViolation(f"tile '{tile.clip_id}' starts at {tile.start_time}, expected {cursor}")
        cursor = tile.end_time
    if abs(cursor - (start_position + total_length)) > EPSILON:
        raise InvariantViolation(f"tiles end at {cursor}, expected {start_position + total_length}")
    return current
