"""Clear a timeline range before a duplicate lands on it.

Duplicating onto a range that already holds a clip corrupts the host, so
every duplicate is preceded by a clearance pass. Clips that only partly
overlap keep the portions outside the range: the part after the range is
copied to scratch space, cut down and moved back in behind the range.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from clip_arranger.arrangement.holding import discard_staged, relocate
from clip_arranger.arrangement.markers import shift_content_start, units_per_beat
from clip_arranger.arrangement.models import EPSILON, InvariantViolation
from clip_arranger.arrangement.truncate import force_truncate_via_overlay
from clip_arranger.config import ClearanceMode, normalize_clearance_mode
from clip_arranger.host.adapter import ClipProperty, PrimitiveAdapter

log = logging.getLogger(__name__)


class ClearanceStrategy(Protocol):
    def clear(self, adapter: PrimitiveAdapter, track_id: str, dest_start: float, dest_end: float) -> None: ...


@dataclass(slots=True)
class SplittingClearance:
    margin_beats: float = 100.0

    def clear(self, adapter: PrimitiveAdapter, track_id: str, dest_start: float, dest_end: float) -> None:
        clear_range(adapter, track_id, dest_start, dest_end, margin_beats=self.margin_beats, clearance=self)


class DisabledClearance:
    """Leaves destinations untouched; only safe on hosts without the overlap defect."""

    def clear(self, adapter: PrimitiveAdapter, track_id: str, dest_start: float, dest_end: float) -> None:
        return None


def clearance_for_mode(mode: str | None, margin_beats: float = 100.0) -> ClearanceStrategy:
    normalized: ClearanceMode = normalize_clearance_mode(mode)
    if normalized == "disabled":
        return DisabledClearance()
    return SplittingClearance(margin_beats=margin_beats)


def clear_range(
    adapter: PrimitiveAdapter,
    track_id: str,
    dest_start: float,
    dest_end: float,
    margin_beats: float = 100.0,
    clearance: ClearanceStrategy | None = None,
) -> None:
    if dest_end - dest_start <= EPSILON:
        return
    strategy = clearance or SplittingClearance(margin_beats=margin_beats)

    # Clips on one track never overlap each other, so one pass is enough.
    for clip_id in adapter.get_overlapping_clip_ids(track_id, dest_start, dest_end):
        _clear_overlapping_clip(adapter, track_id, clip_id, dest_start, dest_end, margin_beats, strategy)

    remaining = adapter.get_overlapping_clip_ids(track_id, dest_start, dest_end)
    if remaining:
        raise InvariantViolation(f"range [{dest_start}, {dest_end}) on '{track_id}' still holds {remaining}")


def _clear_overlapping_clip(
    adapter: PrimitiveAdapter,
    track_id: str,
    clip_id: str,
    dest_start: float,
    dest_end: float,
    margin_beats: float,
    strategy: ClearanceStrategy,
) -> None:
    clip_start = float(adapter.get_property(clip_id, ClipProperty.START_TIME))
    clip_end = float(adapter.get_property(clip_id, ClipProperty.END_TIME))
    has_before = dest_start - clip_start > EPSILON
    has_after = clip_end - dest_end > EPSILON

    if not has_after:
        if has_before:
            log.debug("clearing tail of %s from %.4f", clip_id, dest_start)
            force_truncate_via_overlay(adapter, track_id, clip_id, dest_start)
        else:
            log.debug("deleting %s inside [%.4f, %.4f)", clip_id, dest_start, dest_end)
            adapter.delete_clip(track_id, clip_id)
        return

    scale = units_per_beat(adapter, clip_id)
    scratch = _scratch_position(adapter, track_id, margin_beats)
    if adapter.get_overlapping_clip_ids(track_id, scratch, scratch + (clip_end - clip_start)):
        raise InvariantViolation(f"scratch space at {scratch} on '{track_id}' is occupied")
    keeper_id = adapter.duplicate_clip_to_position(track_id, clip_id, scratch)

    after_length = clip_end - dest_end
    try:
        if has_before:
            force_truncate_via_overlay(adapter, track_id, clip_id, dest_start)
        else:
            adapter.delete_clip(track_id, clip_id)

        force_truncate_via_overlay(adapter, track_id, keeper_id, scratch + after_length)
        shift_content_start(adapter, keeper_id, dest_end - clip_start, scale)
        relocate(adapter, track_id, keeper_id, dest_end, strategy)
    except Exception:
        discard_staged(adapter, track_id, keeper_id)
        raise
    log.debug("kept %.4f beats of %s behind %.4f", after_length, clip_id, dest_end)


def _scratch_position(adapter: PrimitiveAdapter, track_id: str, margin_beats: float) -> float:
    highest_end = 0.0
    for clip_id in adapter.get_clip_ids(track_id):
        highest_end = max(highest_end, float(adapter.get_property(clip_id, ClipProperty.END_TIME)))
    return highest_end + margin_beats
