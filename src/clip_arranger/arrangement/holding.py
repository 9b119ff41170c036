"""Staging of shortened copies in the holding area past the arrangement end."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from clip_arranger.arrangement.models import EPSILON, InvariantViolation
from clip_arranger.arrangement.truncate import force_truncate_via_overlay
from clip_arranger.host.adapter import ClipProperty, HostError, PrimitiveAdapter

if TYPE_CHECKING:
    from clip_arranger.arrangement.clearance import ClearanceStrategy

log = logging.getLogger(__name__)


def holding_area_start(adapter: PrimitiveAdapter, gap_bars: int = 10, minimum_end: float = 0.0) -> float:
    """First beat of the holding area: a bar-aligned gap past everything placed.

    ``minimum_end`` lets callers include the end of a pending resize so tiles
    never land inside the holding area.
    """
    beats_per_bar = adapter.get_beats_per_bar()
    highest_end = max(minimum_end, 0.0)
    for track_id in adapter.get_track_ids():
        for clip_id in adapter.get_clip_ids(track_id):
            highest_end = max(highest_end, float(adapter.get_property(clip_id, ClipProperty.END_TIME)))

    highest_bar = math.ceil(highest_end / beats_per_bar - 1e-9)
    holding_bar = max(highest_bar + gap_bars, gap_bars)
    return holding_bar * beats_per_bar


def stage_shortened(
    adapter: PrimitiveAdapter,
    track_id: str,
    source_id: str,
    target_length: float,
    holding_start: float,
    clearance: ClearanceStrategy,
) -> str:
    """Duplicate ``source_id`` into the holding area and cut it to ``target_length``."""
    source_start = float(adapter.get_property(source_id, ClipProperty.START_TIME))
    source_end = float(adapter.get_property(source_id, ClipProperty.END_TIME))
    source_length = source_end - source_start
    if target_length <= EPSILON:
        raise ValueError(f"staged length must be positive, got {target_length}")
    if target_length > source_length + EPSILON:
        raise ValueError(f"cannot stage {target_length} beats of clip '{source_id}' which is {source_length} long")

    clearance.clear(adapter, track_id, holding_start, holding_start + source_length)
    holding_id = adapter.duplicate_clip_to_position(track_id, source_id, holding_start)
    try:
        force_truncate_via_overlay(adapter, track_id, holding_id, holding_start + target_length)
    except Exception:
        discard_staged(adapter, track_id, holding_id)
        raise
    log.debug("staged %s as %s (%.4f beats) at %.4f", source_id, holding_id, target_length, holding_start)
    return holding_id


def relocate(
    adapter: PrimitiveAdapter,
    track_id: str,
    holding_id: str,
    target_position: float,
    clearance: ClearanceStrategy,
) -> str:
    """Move a staged clip to ``target_position``; the staged copy is removed."""
    start = float(adapter.get_property(holding_id, ClipProperty.START_TIME))
    end = float(adapter.get_property(holding_id, ClipProperty.END_TIME))
    length = end - start

    clearance.clear(adapter, track_id, target_position, target_position + length)
    final_id = adapter.duplicate_clip_to_position(track_id, holding_id, target_position)
    adapter.delete_clip(track_id, holding_id)

    placed_end = float(adapter.get_property(final_id, ClipProperty.END_TIME))
    if abs(placed_end - (target_position + length)) > EPSILON:
        raise InvariantViolation(f"relocated clip '{final_id}' ends at {placed_end}, expected {target_position + length}")
    return final_id


def create_partial_tile(
    adapter: PrimitiveAdapter,
    track_id: str,
    source_id: str,
    target_position: float,
    length: float,
    holding_start: float,
    clearance: ClearanceStrategy,
) -> str:
    holding_id = stage_shortened(adapter, track_id, source_id, length, holding_start, clearance)
    try:
        return relocate(adapter, track_id, holding_id, target_position, clearance)
    except Exception:
        discard_staged(adapter, track_id, holding_id)
        raise


def discard_staged(adapter: PrimitiveAdapter, track_id: str, clip_id: str) -> None:
    """Remove a staged clip left behind by a failed edit, if it is still there."""
    try:
        if clip_id in adapter.get_clip_ids(track_id):
            adapter.delete_clip(track_id, clip_id)
    except HostError as exc:
        log.warning("could not remove staged clip %s from %s: %s", clip_id, track_id, exc)
