"""Pick and run the strategy that brings a placed clip to a new length."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from clip_arranger.arrangement.clearance import ClearanceStrategy
from clip_arranger.arrangement.holding import discard_staged, relocate
from clip_arranger.arrangement.markers import units_per_beat, write_content_window
from clip_arranger.arrangement.models import (
    EPSILON,
    ClipVariant,
    InvariantViolation,
    LoopingClip,
    OneShotAudioUnwarpedClip,
    OneShotAudioWarpedClip,
    OneShotNoteClip,
)
from clip_arranger.arrangement.tiling import tile_clip_to_range
from clip_arranger.arrangement.truncate import force_truncate_via_overlay
from clip_arranger.host.adapter import ClipProperty, HostError, PrimitiveAdapter

log = logging.getLogger(__name__)


@dataclass(slots=True)
class EditResult:
    clip_ids: list[str]
    achieved_length: float
    warnings: list[str] = field(default_factory=list)


def classify_clip(adapter: PrimitiveAdapter, track_id: str, clip_id: str) -> ClipVariant:
    start_time = float(adapter.get_property(clip_id, ClipProperty.START_TIME))
    end_time = float(adapter.get_property(clip_id, ClipProperty.END_TIME))
    start_marker = float(adapter.get_property(clip_id, ClipProperty.START_MARKER))
    is_audio = bool(adapter.get_property(clip_id, ClipProperty.IS_AUDIO_CLIP))

    if adapter.get_property(clip_id, ClipProperty.LOOPING):
        return LoopingClip(
            clip_id=clip_id,
            track_id=track_id,
            start_time=start_time,
            end_time=end_time,
            loop_start=float(adapter.get_property(clip_id, ClipProperty.LOOP_START)),
            loop_end=float(adapter.get_property(clip_id, ClipProperty.LOOP_END)),
            start_marker=start_marker,
            is_audio=is_audio,
        )

    end_marker = float(adapter.get_property(clip_id, ClipProperty.END_MARKER))
    if not is_audio:
        return OneShotNoteClip(clip_id, track_id, start_time, end_time, start_marker, end_marker)
    file_path = adapter.get_property(clip_id, ClipProperty.FILE_PATH)
    if adapter.get_property(clip_id, ClipProperty.WARPING):
        return OneShotAudioWarpedClip(clip_id, track_id, start_time, end_time, start_marker, end_marker, file_path)
    return OneShotAudioUnwarpedClip(clip_id, track_id, start_time, end_time, start_marker, end_marker, file_path)


def shorten(adapter: PrimitiveAdapter, clip: ClipVariant, target_length: float) -> EditResult:
    force_truncate_via_overlay(adapter, clip.track_id, clip.clip_id, clip.start_time + target_length)
    return EditResult(clip_ids=[clip.clip_id], achieved_length=target_length)


def lengthen(
    adapter: PrimitiveAdapter,
    clip: ClipVariant,
    target_length: float,
    holding_start: float,
    clearance: ClearanceStrategy,
) -> EditResult:
    if target_length <= clip.length + EPSILON:
        raise ValueError(f"target length {target_length} does not exceed current length {clip.length}")
    if isinstance(clip, LoopingClip):
        return _lengthen_looping(adapter, clip, target_length, holding_start, clearance)
    if isinstance(clip, OneShotNoteClip):
        return _lengthen_note(adapter, clip, target_length, holding_start, clearance)
    if isinstance(clip, OneShotAudioWarpedClip):
        return _lengthen_warped(adapter, clip, target_length, holding_start, clearance)
    if isinstance(clip, OneShotAudioUnwarpedClip):
        return _lengthen_unwarped(adapter, clip, target_length, clearance)
    raise TypeError(f"unsupported clip variant {type(clip).__name__}")


def _lengthen_looping(
    adapter: PrimitiveAdapter,
    clip: LoopingClip,
    target_length: float,
    holding_start: float,
    clearance: ClearanceStrategy,
) -> EditResult:
    scale = units_per_beat(adapter, clip.clip_id)
    current = clip.length
    content_length = (clip.loop_end - clip.loop_start) / scale
    offset = (clip.start_marker - clip.loop_start) / scale
    to_loop_end = (clip.loop_end - clip.start_marker) / scale

    def tile(start: float, total: float, **kwargs) -> list[str]:
        tiles = tile_clip_to_range(adapter, clip.track_id, clip.clip_id, start, total, holding_start, clearance, **kwargs)
        return [item.clip_id for item in tiles]

    if target_length < content_length:
        # Target still inside one pass of the loop: tiles of the current length pick up where it stops.
        log.debug("lengthening %s within its loop", clip.clip_id)
        extra = tile(
            clip.end_time,
            target_length - current,
            start_offset=offset + current,
            tile_length=current,
            adjust_pre_roll=False,
        )
    elif current < to_loop_end - EPSILON:
        log.debug("lengthening %s from inside its first loop pass", clip.clip_id)
        extra = tile(clip.end_time, target_length - current, start_offset=offset + current, tile_length=current)
    elif current > to_loop_end + EPSILON:
        # Already past the first wrap: cut back to the loop end and tile whole passes from there.
        log.debug("realigning %s to its loop end before tiling", clip.clip_id)
        force_truncate_via_overlay(adapter, clip.track_id, clip.clip_id, clip.start_time + to_loop_end)
        extra = tile(clip.start_time + to_loop_end, target_length - to_loop_end, tile_length=to_loop_end)
    else:
        extra = tile(clip.end_time, target_length - current, tile_length=current)

    return EditResult(clip_ids=[clip.clip_id, *extra], achieved_length=target_length)


def _lengthen_note(
    adapter: PrimitiveAdapter,
    clip: OneShotNoteClip,
    target_length: float,
    holding_start: float,
    clearance: ClearanceStrategy,
) -> EditResult:
    warnings: list[str] = []
    try:
        content_end = adapter.get_content_extent(clip.clip_id)
    except HostError as exc:
        _warn(warnings, f"Could not read the note content of clip '{clip.clip_id}': {exc}")
        return EditResult([clip.clip_id], clip.length, warnings)

    if content_end - (clip.start_marker + clip.length) > EPSILON:
        revealed = min(content_end - clip.start_marker, target_length)
        reveal_end = clip.start_time + revealed
        clearance.clear(adapter, clip.track_id, clip.end_time, reveal_end)
        adapter.set_property(clip.clip_id, ClipProperty.END_MARKER, clip.start_marker + revealed)
        placed_end = float(adapter.get_property(clip.clip_id, ClipProperty.END_TIME))
        if abs(placed_end - reveal_end) > EPSILON:
            raise InvariantViolation(f"clip '{clip.clip_id}' ends at {placed_end} after reveal, expected {reveal_end}")

        clip_ids = [clip.clip_id]
        remaining = target_length - revealed
        if remaining > EPSILON:
            tiles = tile_clip_to_range(
                adapter,
                clip.track_id,
                clip.clip_id,
                reveal_end,
                remaining,
                holding_start,
                clearance,
                start_offset=revealed,
                tile_length=revealed,
                adjust_pre_roll=False,
            )
            clip_ids.extend(tile.clip_id for tile in tiles)
        return EditResult(clip_ids, target_length, warnings)

    # Nothing hidden past the end marker: keep the clip and pad with an empty clip.
    gap = target_length - clip.length
    clearance.clear(adapter, clip.track_id, clip.end_time, clip.end_time + gap)
    filler_id = adapter.create_clip(clip.track_id, clip.end_time, gap)
    log.debug("padded %s with empty clip %s (%.4f beats)", clip.clip_id, filler_id, gap)
    return EditResult([clip.clip_id, filler_id], target_length, warnings)


def _lengthen_warped(
    adapter: PrimitiveAdapter,
    clip: OneShotAudioWarpedClip,
    target_length: float,
    holding_start: float,
    clearance: ClearanceStrategy,
) -> EditResult:
    warnings: list[str] = []
    if not clip.file_path:
        _warn(warnings, f"Audio clip '{clip.clip_id}' has no file to extend from")
        return EditResult([clip.clip_id], clip.length, warnings)

    try:
        probe_id = adapter.create_clip(clip.track_id, holding_start, 1.0, clip.file_path)
    except HostError as exc:
        _warn(warnings, f"Could not probe the file of audio clip '{clip.clip_id}': {exc}")
        return EditResult([clip.clip_id], clip.length, warnings)

    try:
        return _reveal_with_probe(adapter, clip, target_length, probe_id, clearance, warnings)
    except Exception:
        discard_staged(adapter, clip.track_id, probe_id)
        raise


def _reveal_with_probe(
    adapter: PrimitiveAdapter,
    clip: OneShotAudioWarpedClip,
    target_length: float,
    probe_id: str,
    clearance: ClearanceStrategy,
    warnings: list[str],
) -> EditResult:
    file_end = float(adapter.get_property(probe_id, ClipProperty.END_MARKER))
    available = file_end - clip.start_marker
    if available <= clip.length + EPSILON:
        adapter.delete_clip(clip.track_id, probe_id)
        _warn(
            warnings,
            f"Audio clip '{clip.clip_id}' has no additional file content "
            f"({available:.3f} beats available, {clip.length:.3f} already shown)",
        )
        return EditResult([clip.clip_id], clip.length, warnings)

    effective = min(target_length, available)
    if effective < target_length - EPSILON:
        _warn(
            warnings,
            f"Audio clip '{clip.clip_id}' capped at the file content boundary "
            f"({effective:.3f} beats of {target_length:.3f} requested)",
        )

    # The probe becomes the tile that reveals the rest of the file.
    tile_start = clip.start_marker + clip.length
    tile_end = clip.start_marker + effective
    write_content_window(adapter, probe_id, tile_start, tile_end)
    adapter.set_property(probe_id, ClipProperty.LOOPING, False)
    adapter.set_property(probe_id, ClipProperty.END_MARKER, tile_end)
    tile_id = relocate(adapter, clip.track_id, probe_id, clip.end_time, clearance)
    return EditResult([clip.clip_id, tile_id], effective, warnings)


def _lengthen_unwarped(
    adapter: PrimitiveAdapter,
    clip: OneShotAudioUnwarpedClip,
    target_length: float,
    clearance: ClearanceStrategy,
) -> EditResult:
    warnings: list[str] = []
    content_seconds = clip.end_marker - clip.start_marker
    if content_seconds <= EPSILON or not clip.file_path:
        _warn(warnings, f"Audio clip '{clip.clip_id}' has no file content to reveal")
        return EditResult([clip.clip_id], clip.length, warnings)

    beats_per_second = clip.length / content_seconds
    wanted_seconds = (target_length - clip.length) / beats_per_second
    extent_known = True
    try:
        available_seconds = max(adapter.get_content_extent(clip.clip_id) - clip.end_marker, 0.0)
    except HostError as exc:
        # Ask for the full amount and let the host clamp; the read-back below reports what happened.
        log.debug("could not read file extent of %s: %s", clip.clip_id, exc)
        available_seconds = wanted_seconds
        extent_known = False

    reveal_seconds = min(wanted_seconds, available_seconds)
    if reveal_seconds * beats_per_second <= EPSILON:
        _warn(warnings, f"Audio clip '{clip.clip_id}' has no additional file content past its end marker")
        return EditResult([clip.clip_id], clip.length, warnings)

    expected_end = clip.end_time + reveal_seconds * beats_per_second
    if not extent_known and adapter.get_overlapping_clip_ids(clip.track_id, clip.end_time, expected_end):
        # The clamp point is unknown, so clearing could remove content the clip never grows over.
        _warn(
            warnings,
            f"Audio clip '{clip.clip_id}' not extended: file length unknown and the span after it is occupied",
        )
        return EditResult([clip.clip_id], clip.length, warnings)

    clearance.clear(adapter, clip.track_id, clip.end_time, expected_end)
    adapter.set_property(clip.clip_id, ClipProperty.END_MARKER, clip.end_marker + reveal_seconds)

    achieved = float(adapter.get_property(clip.clip_id, ClipProperty.END_TIME)) - clip.start_time
    if achieved <= clip.length + EPSILON:
        _warn(warnings, f"Audio clip '{clip.clip_id}' did not grow past {clip.length:.3f} beats")
    elif achieved < target_length - EPSILON:
        _warn(
            warnings,
            f"Audio clip '{clip.clip_id}' capped at the file content boundary "
            f"({achieved:.3f} beats of {target_length:.3f} requested)",
        )
    return EditResult([clip.clip_id], achieved, warnings)


def _warn(warnings: list[str], message: str) -> None:
    log.warning(message)
    warnings.append(message)
