"""Shorten placed clips by overlaying and removing a throwaway filler."""

from __future__ import annotations

import logging

from clip_arranger.arrangement.models import EPSILON, InvariantViolation
from clip_arranger.host.adapter import ClipProperty, PrimitiveAdapter

log = logging.getLogger(__name__)


def force_truncate_via_overlay(adapter: PrimitiveAdapter, track_id: str, clip_id: str, new_end_time: float) -> None:
    """Move a clip's placed end back to ``new_end_time``.

    The host has no resize primitive. A filler created over
    ``[new_end_time, end_time)`` makes the host trim the clip to keep the
    track free of overlaps; the filler is deleted right away. Truncating a
    clip that already ends at ``new_end_time`` does nothing.
    """
    start_time = float(adapter.get_property(clip_id, ClipProperty.START_TIME))
    end_time = float(adapter.get_property(clip_id, ClipProperty.END_TIME))
    if new_end_time > end_time + EPSILON:
        raise ValueError(f"cannot truncate clip '{clip_id}' ending at {end_time} to a later end {new_end_time}")
    if new_end_time <= start_time + EPSILON:
        raise ValueError(f"truncating clip '{clip_id}' to {new_end_time} would leave nothing at {start_time}")

    filler_length = end_time - new_end_time
    if filler_length <= EPSILON:
        return
    if abs(new_end_time + filler_length - end_time) > EPSILON:
        raise InvariantViolation(f"filler bounds for clip '{clip_id}' do not add up to {end_time}")

    log.debug("truncating %s on %s from %.4f to %.4f", clip_id, track_id, end_time, new_end_time)
    filler_id = adapter.create_empty_filler(track_id, new_end_time, filler_length)
    adapter.delete_clip(track_id, filler_id)

    actual_end = float(adapter.get_property(clip_id, ClipProperty.END_TIME))
    if abs(actual_end - new_end_time) > EPSILON:
        raise InvariantViolation(f"clip '{clip_id}' ends at {actual_end} after truncation, expected {new_end_time}")
